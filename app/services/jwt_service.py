"""
JWT Service for QR token signing and verification
"""
import jwt
import uuid
from datetime import datetime, timedelta
from typing import Dict, Any, Optional

from app.core.config import settings
from app.core.constants import QR_TOKEN_TYPE_EVENT
from app.core.exceptions import TokenExpiredException, InvalidTokenException
from app.utils.time_utils import utcnow


class JwtService:
    def __init__(self) -> None:
        self.secret = settings.QR_JWT_SECRET
        self.algorithm = settings.QR_JWT_ALG
        self.issuer = settings.QR_JWT_ISSUER

    def sign_event_token(
        self,
        event_id: int,
        ttl_minutes: int,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Sign an event-scoped QR token

        Returns:
            dict: {token: str, jti: str, issued_at: datetime, expires_at: datetime}
        """
        issued_at = now or utcnow()
        expires_at = issued_at + timedelta(minutes=ttl_minutes)

        # Unique per issuance so two tokens signed in the same second still differ
        jti = str(uuid.uuid4())

        payload = {
            "iss": self.issuer,
            "aud": f"event:{event_id}",
            "eid": event_id,
            "type": QR_TOKEN_TYPE_EVENT,
            "jti": jti,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp())
        }

        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)

        return {
            "token": token,
            "jti": jti,
            "issued_at": issued_at,
            "expires_at": expires_at
        }

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a scanned QR token

        Args:
            token: JWT string from QR code

        Returns:
            dict: Decoded payload

        Raises:
            TokenExpiredException: Signature valid but past exp
            InvalidTokenException: Anything else wrong with the token
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"verify_exp": True, "verify_aud": False}  # aud checked against eid below
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenException(f"Invalid QR code: {str(e)}")

        required_fields = ["iss", "aud", "eid", "type", "jti", "iat", "exp"]
        for field in required_fields:
            if field not in payload:
                raise InvalidTokenException(f"Missing required field: {field}")

        if payload["aud"] != f"event:{payload['eid']}":
            raise InvalidTokenException("Event ID mismatch in token")

        return payload
