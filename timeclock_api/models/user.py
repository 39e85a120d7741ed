from datetime import datetime
from timeclock_api.extensions import db
from werkzeug.security import generate_password_hash, check_password_hash

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_EMPLOYEE = "employee"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE)

EMPLOYMENT_TYPES = ("Full-Time", "Part-Time", "Seasonal", "Temporary", "On-Call")
SHIFT_TYPES = ("First Shift", "Second Shift", "Third Shift")


class User(db.Model):
    __tablename__ = "users"

    id              = db.Column(db.Integer, primary_key=True)
    company_id      = db.Column(db.Integer, db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    username        = db.Column(db.String(100), unique=True, nullable=False)
    email           = db.Column(db.String(255), unique=True, nullable=False)
    password_hash   = db.Column(db.String(255), nullable=False)
    full_name       = db.Column(db.String(255), nullable=False)
    role            = db.Column(db.String(50), nullable=False, default=ROLE_EMPLOYEE)
    employment_type = db.Column(db.String(50), nullable=True)
    shift_type      = db.Column(db.String(50), nullable=True)
    is_active       = db.Column(db.Boolean, nullable=False, default=True)
    created_at      = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at      = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("role in ('admin','manager','employee')", name="ck_users_role"),
    )

    company = db.relationship("Company", back_populates="users")

    # --- helpers ---
    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return check_password_hash(self.password_hash, raw)

    def to_dict(self):
        # password_hash never leaves the model
        return {
            "id": self.id,
            "company_id": self.company_id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "employment_type": self.employment_type,
            "shift_type": self.shift_type,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
