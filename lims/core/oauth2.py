from fastapi.security import OAuth2PasswordBearer

# Bearer token issued by POST /auth/login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
