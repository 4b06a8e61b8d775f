import os

# Settings are validated at import time
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-123")

import json
from datetime import datetime, timedelta
from unittest.mock import Mock

import mongomock
import pytest
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.api import deps
from app.models.product import ProductModel
from app.models.user import UserModel
from app.services.ai_completion_service import AICompletion, AICompletionService
from app.services.regeneration_queue import RegenerationQueue
from app.services.routine_generator_service import RoutineGeneratorService

FIVE_PRODUCTS = [
    ("CeraVe Foaming Cleanser", "CeraVe", "cleanser"),
    ("Thayers Witch Hazel Toner", "Thayers", "toner"),
    ("The Ordinary Niacinamide", "The Ordinary", "serum"),
    ("Neutrogena Hydro Boost", "Neutrogena", "moisturizer"),
    ("La Roche-Posay Anthelios SPF 50", "La Roche-Posay", "sunscreen"),
]


def routine_json(product_names, warnings=None, **extra) -> str:
    """Build an AI routine payload suggesting the given products in order"""
    payload = {
        "steps": [
            {
                "stepNumber": i,
                "productName": name,
                "instruction": f"Apply {name}",
                "waitTime": 1,
            }
            for i, name in enumerate(product_names, 1)
        ],
        "compatibilityWarnings": warnings or [],
        "estimatedDuration": 10,
        "tips": ["Be gentle"],
    }
    payload.update(extra)
    return json.dumps(payload)


def ai_completion(text: str, completion_status: str = "ok") -> AICompletion:
    return AICompletion(text=text, completion_status=completion_status)


@pytest.fixture
def test_db():
    """In-memory MongoDB database"""
    client = mongomock.MongoClient()
    database = client.skinsense_test
    yield database
    client.drop_database("skinsense_test")
    client.close()


@pytest.fixture
def test_user(test_db):
    user = UserModel(
        email="test@example.com",
        username="testuser",
        profile={"skin_type": "combination", "skin_concerns": ["acne", "dryness"]},
    )
    test_db.users.insert_one(user.model_dump(by_alias=True))
    return user


@pytest.fixture
def other_user(test_db):
    user = UserModel(email="other@example.com", username="otheruser")
    test_db.users.insert_one(user.model_dump(by_alias=True))
    return user


@pytest.fixture
def make_product(test_db, test_user):
    """Insert a product; successive products get increasing created_at so catalog order is stable"""
    counter = {"n": 0}

    def _make(name, product_type="other", brand="Brand", user=None, **fields):
        counter["n"] += 1
        product = ProductModel(
            user_id=(user or test_user).id,
            name=name,
            brand=brand,
            type=product_type,
            created_at=datetime(2024, 1, 1) + timedelta(minutes=counter["n"]),
            **fields,
        )
        doc = product.model_dump(by_alias=True)
        test_db.products.insert_one(doc)
        return doc

    return _make


@pytest.fixture
def five_products(make_product):
    return [make_product(name, product_type, brand) for name, brand, product_type in FIVE_PRODUCTS]


@pytest.fixture
def mock_ai():
    """AI collaborator that suggests the five standard products in order"""
    mock = Mock(spec=AICompletionService)
    mock.complete.return_value = ai_completion(routine_json([p[0] for p in FIVE_PRODUCTS]))
    return mock


@pytest.fixture
def generator(test_db, mock_ai):
    return RoutineGeneratorService(test_db, mock_ai)


@pytest.fixture
def regeneration_queue(test_db, mock_ai):
    queue = RegenerationQueue(lambda: RoutineGeneratorService(test_db, mock_ai), max_workers=1)
    yield queue
    queue.shutdown(wait=True)


@pytest.fixture
def mock_queue():
    return Mock(spec=RegenerationQueue)


@pytest.fixture
async def client(test_db, test_user, mock_ai, mock_queue):
    """API client logged in as test_user, with regeneration captured by mock_queue"""
    app.dependency_overrides[deps.get_db] = lambda: test_db
    app.dependency_overrides[deps.get_current_active_user] = lambda: test_user
    app.dependency_overrides[deps.get_ai_service] = lambda: mock_ai
    app.dependency_overrides[deps.get_regeneration_queue] = lambda: mock_queue

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
