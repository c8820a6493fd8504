"""QR token issuance, validation and rendering service."""
import base64
import hashlib
import io
import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import qrcode
from cryptography.fernet import Fernet, InvalidToken as FernetInvalidToken
from flask import current_app

from qr_attendance import db
from qr_attendance.models.attendance_session import AttendanceSession
from qr_attendance.utils.errors import InvalidToken
from qr_attendance.utils.helpers import utcnow

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified contents of a QR token."""
    session_id: int
    expires_at: datetime

class QRService:
    """Service for QR token operations.

    A token is a Fernet ciphertext of ``{"sid", "exp", "nonce"}``. Fernet
    authenticates the ciphertext, so tampering or a foreign key fails
    decryption. The minted token is also stored on the session row; that
    copy is what revocation and idempotent re-issuance work against.
    """

    @staticmethod
    def _fernet() -> Fernet:
        secret = current_app.config.get('QR_TOKEN_SECRET') or current_app.config.get('SECRET_KEY')
        if not secret:
            raise RuntimeError('No QR token key configured')
        try:
            return Fernet(secret)
        except (ValueError, TypeError):
            digest = hashlib.sha256(str(secret).encode()).digest()
            return Fernet(base64.urlsafe_b64encode(digest))

    @staticmethod
    def _to_epoch(value: datetime) -> int:
        return int(value.replace(tzinfo=timezone.utc).timestamp())

    @staticmethod
    def _from_epoch(value: int) -> datetime:
        return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)

    @staticmethod
    def issue_token(session: AttendanceSession, now: Optional[datetime] = None) -> str:
        """Mint the session's token, or return the one it already holds.

        Expiry is fixed at issuance: activation time + qr_validity_minutes.
        The caller owns the transaction.
        """
        if session.has_live_token():
            return session.qr_token

        now = now or utcnow()
        issued_at = session.started_at or now
        expires_at = (issued_at + timedelta(minutes=session.qr_validity_minutes)).replace(microsecond=0)

        payload = {
            'sid': session.id,
            'exp': QRService._to_epoch(expires_at),
            'nonce': secrets.token_urlsafe(16)
        }
        token = QRService._fernet().encrypt(
            json.dumps(payload, separators=(',', ':')).encode()
        ).decode()

        session.qr_token = token
        session.qr_expires_at = expires_at
        session.token_revoked_at = None

        logger.info('Issued QR token for session %s, expires %s', session.id, expires_at.isoformat())
        return token

    @staticmethod
    def decode_token(token: str) -> TokenClaims:
        """Decrypt and parse a token without consulting the database."""
        if not token or not isinstance(token, str):
            raise InvalidToken()

        try:
            raw = QRService._fernet().decrypt(token.strip().encode())
            payload = json.loads(raw)
            return TokenClaims(
                session_id=int(payload['sid']),
                expires_at=QRService._from_epoch(int(payload['exp']))
            )
        except FernetInvalidToken:
            raise InvalidToken()
        except (ValueError, KeyError, TypeError):
            raise InvalidToken()

    @staticmethod
    def validate_token(token: str, now: Optional[datetime] = None) -> TokenClaims:
        """Return the token's claims or raise ``InvalidToken``.

        Rejects bad ciphertext, elapsed expiry, and tokens that are not the
        live token of their session (revoked or superseded).
        """
        claims = QRService.decode_token(token)
        now = now or utcnow()

        if now > claims.expires_at:
            raise InvalidToken('QR code has expired, ask your teacher to refresh it')

        session = db.session.get(AttendanceSession, claims.session_id)
        if session is None or session.qr_token != token.strip():
            raise InvalidToken()

        if session.token_revoked_at is not None:
            raise InvalidToken('QR code is no longer valid, the session has ended')

        return claims

    @staticmethod
    def revoke_token(session: AttendanceSession, now: Optional[datetime] = None) -> None:
        """Invalidate the session's token. The caller owns the transaction."""
        if session.qr_token is None or session.token_revoked_at is not None:
            return

        session.token_revoked_at = now or utcnow()
        logger.info('Revoked QR token for session %s', session.id)

    @staticmethod
    def render_qr_png(data: str) -> bytes:
        """Render ``data`` as a PNG QR code."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=current_app.config.get('QR_BOX_SIZE', 10),
            border=current_app.config.get('QR_BORDER', 4),
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        return buffered.getvalue()
