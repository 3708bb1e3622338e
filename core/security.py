# core/security.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import bcrypt
from fastapi import Depends, status, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import select

from core.config import settings
from core.database import SessionDep
from models.enums import UserRole
from models.tokens import Token as DBToken
from models.users import User

logger = logging.getLogger(__name__)

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")

# ----------------------------------------------------------------------
# FUNCIONES DE CONTRASEÑA
# ----------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hashea una contraseña utilizando bcrypt."""
    hashed_password = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
    return hashed_password.decode('utf-8')

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña plana contra su versión hasheada."""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False

# ----------------------------------------------------------------------
# FUNCIONES DE TOKEN (JWT)
# ----------------------------------------------------------------------

def encode_token(data: dict):
    """Crea y codifica un token JWT. Devuelve el token y su fecha de expiración."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": int(expire.timestamp())})

    token = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return token, expire

def decode_token(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep
) -> User:
    """
    Decodifica el token, valida al usuario y verifica que el token siga activo en DB.
    """
    try:
        data = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Invalid or expired token.",
                            headers={"WWW-Authenticate": "Bearer"})

    username = data.get('username')
    if username is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="The token data is incomplete (missing username)")

    # 1. Búsqueda del usuario
    user_db = session.exec(select(User).where(User.username == username)).first()
    if user_db is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # 2. Validaciones del usuario
    if not user_db.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="User is inactive. Contact system manager.")

    # 3. Comprobación del token en la base de datos
    db_token = session.exec(
        select(DBToken)
        .where(DBToken.token == token,
               DBToken.id_user == user_db.id,
               DBToken.status_token == True)
    ).first()

    if not db_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Token has been invalidated or not found/active in database.",
                            headers={"WWW-Authenticate": "Bearer"})

    return user_db


CurrentUser = Annotated[User, Depends(decode_token)]


# ----------------------------------------------------------------------
# DEPENDENCIA DE AUTORIZACIÓN (Roles)
# ----------------------------------------------------------------------

def require_role(*allowed_roles: UserRole):
    """
    Dependencia de FastAPI que exige que el usuario autenticado tenga uno de los roles indicados.
    """
    def role_verifier(current_user: CurrentUser) -> User:
        if current_user.role not in allowed_roles:
            logger.info("Acceso denegado a %s (rol %s)", current_user.username, current_user.role.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions: role {current_user.role.value} is not allowed."
            )
        return current_user

    return role_verifier


STAFF_ROLES = (UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF)
MANAGER_ROLES = (UserRole.ADMIN, UserRole.MANAGER)

StaffUser = Annotated[User, Depends(require_role(*STAFF_ROLES))]
ManagerUser = Annotated[User, Depends(require_role(*MANAGER_ROLES))]


# Para rutas públicas que aceptan (pero no exigen) un usuario autenticado
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)

def get_optional_user(
    session: SessionDep,
    token: Annotated[Optional[str], Depends(optional_oauth2_scheme)] = None,
) -> Optional[User]:
    if not token:
        return None
    return decode_token(token, session)


OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
