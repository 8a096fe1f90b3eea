"""Per-user session context passed explicitly to code that needs it.

Holds the preferences an operator carries between requests (currently the
HTML email signature). Lifecycle: load when the session starts, persist after
a change, clear at logout.
"""

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from crm_portal.app.models.user import User


@dataclass
class UserSession:
    user_id: Optional[int] = None
    email: str = ""
    name: str = ""
    token: Optional[str] = None
    signature_html: str = ""
    _dirty: bool = field(default=False, repr=False)

    @classmethod
    def load(cls, user: User, token: Optional[str] = None) -> "UserSession":
        return cls(
            user_id=user.id,
            email=user.email,
            name=user.name or user.email,
            token=token,
            signature_html=user.signature_html or "",
        )

    @property
    def is_active(self) -> bool:
        return self.user_id is not None

    @property
    def sender_label(self) -> str:
        return self.name or self.email or "CRM User"

    def update_signature(self, signature_html: str) -> None:
        if signature_html != self.signature_html:
            self.signature_html = signature_html
            self._dirty = True

    def persist(self, db: Session) -> None:
        if not self._dirty or self.user_id is None:
            return
        user = db.query(User).filter(User.id == self.user_id).first()
        if user is None:
            return
        user.signature_html = self.signature_html
        db.commit()
        self._dirty = False

    def clear(self) -> None:
        self.user_id = None
        self.email = ""
        self.name = ""
        self.token = None
        self.signature_html = ""
        self._dirty = False

    def sign_html(self, html_body: str) -> str:
        if not self.signature_html:
            return html_body
        if not html_body:
            return self.signature_html
        return f"{html_body}<br><br>{self.signature_html}"
