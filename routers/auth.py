import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status, HTTPException
from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError

from core.database import SessionDep
from core.security import CurrentUser, encode_token, oauth2_scheme, verify_password
from models.users import User
from models.tokens import Token as DBToken
from schemas.users_schema import UserLogin, UserRead
from schemas.tokens_schema import AccessTokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["AUTH"])

# Excepción de seguridad reutilizada para no revelar qué dato falló
INVALID_CREDENTIALS = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid credentials (username/password)",
    headers={"WWW-Authenticate": "Bearer"},
)

@router.post("/login", response_model=AccessTokenResponse, status_code=status.HTTP_200_OK)
def login_user(user_data: UserLogin, session: SessionDep):
    try:
        # --- 1. Búsqueda de usuario ---
        user_db = session.exec(select(User).where(User.username == user_data.username)).first()
        if not user_db:
            raise INVALID_CREDENTIALS

        # --- 2. Verificación de contraseña y estado ---
        if not user_db.password or not verify_password(user_data.password, user_db.password):
            raise INVALID_CREDENTIALS

        if not user_db.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive. Contact your system manager.")

        # --- 3. Invalidar tokens existentes y crear uno nuevo ---
        existing_tokens = session.exec(
            select(DBToken).where(DBToken.id_user == user_db.id, DBToken.status_token == True)
        ).all()
        for token_entry in existing_tokens:
            token_entry.revoke()
            session.add(token_entry)

        payload = {
            "username": user_db.username,
            "email": user_db.email,
            "user_id": user_db.id,
            "role_name": user_db.role.value,
        }
        encoded_jwt, expires_at = encode_token(payload)

        now = datetime.now(timezone.utc)
        session.add(DBToken(
            token=encoded_jwt,
            id_user=user_db.id,
            expiration=expires_at,
            status_token=True,
            date_token=now,
        ))
        user_db.last_connection = datetime.utcnow()
        session.add(user_db)
        session.commit()

    except HTTPException:
        session.rollback()
        raise
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error de base de datos en login")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error while managing the security session.",
        )

    logger.info("Login de %s", user_db.username)

    # --- 4. Devolver respuesta ---
    return {
        "access_token": encoded_jwt,
        "token_type": "bearer",
        "role_name": user_db.role.value,
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout_user(current_user: CurrentUser, session: SessionDep, token: str = Depends(oauth2_scheme)):
    """Invalida el token con el que se hizo la petición."""
    db_token = session.exec(
        select(DBToken).where(DBToken.token == token, DBToken.id_user == current_user.id)
    ).first()
    if db_token:
        db_token.revoke()
        session.add(db_token)
        session.commit()
    return


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: CurrentUser):
    return current_user
