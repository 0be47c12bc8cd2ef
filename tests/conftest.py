import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["TESTING"] = "true"

import time
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentledger.core.config import settings
from rentledger.database import get_db
from rentledger.db.base import Base
from rentledger.main import app
from rentledger.models import (
    Payment, PaymentStatus, Profile, Property, RentCycle, Tenancy, TenancyStatus, Unit, UserRole
)
from rentledger.services.storage_service import StorageError, get_proof_storage
from rentledger.services.supabase_service import SupabaseAuthError, get_supabase_service


class FakeSupabase:
    """In-memory stand-in for Supabase Auth"""

    def __init__(self):
        self.users = {}
        self.reset_requests = []
        self.signed_out = []
        self.password_updates = []

    def sign_up(self, email, password, metadata=None, redirect_to=None):
        if any(u["email"] == email for u in self.users.values()):
            raise SupabaseAuthError("User already registered")
        user_id = str(uuid.uuid4())
        self.users[user_id] = {"email": email, "password": password, "metadata": metadata or {}}
        return {"id": user_id, "email": email}

    def sign_in(self, email, password):
        for user_id, user in self.users.items():
            if user["email"] == email and user["password"] == password:
                return {
                    "user": {"id": user_id, "email": email, "user_metadata": user["metadata"]},
                    "access_token": make_token(user_id, email, user["metadata"]),
                    "refresh_token": "refresh-" + user_id,
                    "expires_in": 3600,
                }
        raise SupabaseAuthError("Invalid email or password")

    def verify_password(self, email, password):
        try:
            self.sign_in(email, password)
            return True
        except SupabaseAuthError:
            return False

    def sign_out(self, access_token):
        self.signed_out.append(access_token)

    def reset_password(self, email, redirect_to=None):
        self.reset_requests.append((email, redirect_to))

    def update_password(self, user_id, new_password):
        self.password_updates.append((user_id, new_password))
        if user_id in self.users:
            self.users[user_id]["password"] = new_password


class FakeStorage:
    """In-memory proof bucket that can be told to fail"""

    def __init__(self):
        self.objects = {}
        self.removed = []
        self.fail_upload = False

    def upload(self, path, content, content_type):
        if self.fail_upload:
            raise StorageError("bucket unavailable")
        self.objects[path] = (content, content_type)
        return f"https://storage.test/payment-proofs/{path}"

    def remove(self, path):
        self.removed.append(path)
        self.objects.pop(path, None)


def make_token(user_id, email=None, metadata=None, secret=None, expires_in=3600):
    claims = {
        "sub": str(user_id),
        "aud": settings.SUPABASE_JWT_AUDIENCE,
        "email": email,
        "user_metadata": metadata or {},
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(claims, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(session_factory, supabase, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_supabase_service] = lambda: supabase
    app.dependency_overrides[get_proof_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(profile):
        token = make_token(profile.id, profile.email, {"full_name": profile.full_name, "role": profile.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _headers


class Factory:
    """Inserts rows directly, bypassing the API"""

    def __init__(self, session):
        self.db = session

    def profile(self, role=UserRole.TENANT, full_name="Ada Obi", phone=None, email=None):
        profile = Profile(
            id=uuid.uuid4(),
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            full_name=full_name,
            phone_number=phone,
            role=role,
        )
        self.db.add(profile)
        self.db.commit()
        return profile

    def landlord(self, full_name="Lola Landlord", phone=None):
        return self.profile(UserRole.LANDLORD, full_name, phone)

    def tenant(self, full_name="Tunde Tenant", phone=None):
        return self.profile(UserRole.TENANT, full_name, phone)

    def property(self, landlord, name="Palm Court", units=2, rent="50000.00"):
        prop = Property(landlord_id=landlord.id, name=name, address="12 Allen Avenue")
        prop.units = [Unit(name=str(n), rent_amount=Decimal(rent)) for n in range(1, units + 1)]
        self.db.add(prop)
        self.db.commit()
        return prop

    def tenancy(
        self,
        tenant,
        unit,
        status=TenancyStatus.ACTIVE,
        start_date=None,
        next_due_date=None,
        rent_cycle=RentCycle.MONTHLY,
    ):
        tenancy = Tenancy(
            tenant_id=tenant.id,
            unit_id=unit.id,
            status=status,
            rent_cycle=rent_cycle,
            start_date=start_date or datetime(2024, 1, 31, tzinfo=timezone.utc),
            next_due_date=next_due_date,
        )
        self.db.add(tenancy)
        self.db.commit()
        return tenancy

    def payment(self, tenancy, amount="50000.00", status=PaymentStatus.PENDING, due_date=None, **fields):
        payment = Payment(
            tenancy_id=tenancy.id,
            amount=Decimal(amount),
            status=status,
            due_date=due_date,
            **fields,
        )
        self.db.add(payment)
        self.db.commit()
        return payment


@pytest.fixture
def factory(db):
    return Factory(db)


def days_from_now(days):
    return datetime.now(timezone.utc) + timedelta(days=days)


@pytest.fixture
def future():
    return days_from_now(10)


@pytest.fixture
def past():
    return days_from_now(-10)
