from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restaurant_ops.core.database import Base
from restaurant_ops.models.business import Business, BusinessPhoneNumber
from restaurant_ops.whatsapp.business_resolver import BusinessResolver, extract_business, extract_identity
from tests.fixtures_data import BUSINESS_PHONE_NUMBER_ID, BUSINESS_SUB_DOMAIN, BUSINESS_WABA_ID, messages_entry


def _build_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()

    owner = Business(sub_domain=BUSINESS_SUB_DOMAIN, name="Burger House", waba_id=BUSINESS_WABA_ID)
    other = Business(sub_domain="pizza-place", name="Pizza Place", waba_id="999")
    db.add_all([owner, other])
    db.flush()
    db.add(BusinessPhoneNumber(business_id=owner.id, phone_number_id=BUSINESS_PHONE_NUMBER_ID))
    db.add(BusinessPhoneNumber(business_id=other.id, phone_number_id="555"))
    db.commit()
    return db


def test_identity_prefers_metadata_over_entry_id():
    entry = messages_entry([], entry_id="999-555")

    identity = extract_identity(entry)

    assert identity.phone_number_id == BUSINESS_PHONE_NUMBER_ID
    assert identity.waba_id == "999"


def test_identity_from_entry_id_splits_on_first_hyphen():
    identity = extract_identity({"id": "123-456-789", "changes": []})

    assert identity.waba_id == "123"
    assert identity.phone_number_id == "456-789"


def test_identity_from_plain_entry_id_is_waba():
    identity = extract_identity({"id": BUSINESS_WABA_ID})

    assert identity.waba_id == BUSINESS_WABA_ID
    assert identity.phone_number_id is None


def test_resolves_by_phone_number_id_first():
    db = _build_session()

    resolved = extract_business(db, messages_entry([], entry_id="999"))

    assert resolved.business.sub_domain == BUSINESS_SUB_DOMAIN
    assert resolved.phone_number_id == BUSINESS_PHONE_NUMBER_ID


def test_falls_back_to_waba_id_when_phone_is_unknown():
    db = _build_session()

    resolved = extract_business(db, messages_entry([], entry_id="999", phone_number_id="unknown"))

    assert resolved.business.sub_domain == "pizza-place"


def test_duplicate_waba_resolves_to_first_business():
    db = _build_session()
    db.add(Business(sub_domain="burger-house-2", name="Filial", waba_id=BUSINESS_WABA_ID))
    db.commit()

    resolved = extract_business(db, {"id": BUSINESS_WABA_ID, "changes": []})

    assert resolved.business.sub_domain == BUSINESS_SUB_DOMAIN


def test_unknown_or_missing_identifiers_return_none():
    db = _build_session()

    assert extract_business(db, {"id": "404", "changes": []}) is None
    assert extract_business(db, {"changes": []}) is None


def test_database_errors_return_none(monkeypatch):
    db = _build_session()

    def _boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(BusinessResolver, "by_phone_number_id", staticmethod(_boom))

    assert extract_business(db, messages_entry([])) is None
