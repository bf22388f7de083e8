from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from batchupload.config import config

bearer_scheme = HTTPBearer(auto_error=False)


class AuthService:
    """Resolves the caller's owner id from a bearer token issued elsewhere.

    Only the signature and the ``sub`` claim are checked; the id is opaque to
    the upload service.
    """

    @staticmethod
    def verify_token(token: str) -> str:
        try:
            payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALG])
        except JWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.")

        owner_id = payload.get("sub")
        if not owner_id:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing subject claim.")

        return str(owner_id)

    @classmethod
    async def get_current_owner(
        cls,
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    ) -> str:
        if credentials is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authorization header required.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return cls.verify_token(credentials.credentials)
