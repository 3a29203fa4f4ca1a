"""
Complyva - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from faker import Faker
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine
from sqlalchemy.pool import NullPool

# Set testing environment before settings are loaded
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./complyva-test.db'
os.environ['LOG_FILE'] = ''

from complyva.core.database import init_db, make_session_factory, get_db
from complyva.core.types import generate_uuid
from complyva.models.enums import EntityType
from complyva.services.activity import ActivityRecorder
from complyva.services.aggregation import AggregationEngine
from complyva.services.cross_links import CrossLinkGraph
from complyva.services.derivation_service import DerivationEngine
from complyva.services.evidence import EvidenceRegistry
from complyva.services.register_store import RegisterStore

fake = Faker()


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh on-disk SQLite database per test"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'complyva.db'}",
        poolclass=NullPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def recorder(session_factory) -> ActivityRecorder:
    return ActivityRecorder(session_factory)


@pytest.fixture
def store(db_session, recorder) -> RegisterStore:
    return RegisterStore(db_session, recorder)


@pytest.fixture
def graph(db_session, recorder) -> CrossLinkGraph:
    return CrossLinkGraph(db_session, recorder)


@pytest.fixture
def derivation(db_session, recorder) -> DerivationEngine:
    return DerivationEngine(db_session, recorder)


@pytest.fixture
def evidence(db_session, recorder) -> EvidenceRegistry:
    return EvidenceRegistry(db_session, recorder)


@pytest.fixture
def aggregation(session_factory) -> AggregationEngine:
    return AggregationEngine(session_factory)


@pytest.fixture
def org_id() -> str:
    return generate_uuid()


@pytest.fixture
def other_org_id() -> str:
    return generate_uuid()


@pytest.fixture
def user_id() -> str:
    return generate_uuid()


@pytest.fixture
def create(store, org_id, user_id):
    """Create a row in the default test organisation with sensible defaults"""
    defaults = {
        EntityType.CERTIFICATION: lambda: {"name": f"ISO 27001 {fake.word()}"},
        EntityType.RISK: lambda: {"title": fake.sentence(nb_words=4), "likelihood": 3, "impact": 3},
        EntityType.AUDIT: lambda: {"title": fake.sentence(nb_words=3), "audit_type": "INTERNAL"},
        EntityType.ASSET: lambda: {"name": fake.company(), "asset_type": "SYSTEM"},
        EntityType.INCIDENT: lambda: {"title": fake.sentence(nb_words=4)},
        EntityType.NC: lambda: {"title": fake.sentence(nb_words=4)},
        EntityType.CAPA: lambda: {"title": fake.sentence(nb_words=4)},
        EntityType.CHANGE: lambda: {"title": fake.sentence(nb_words=4)},
        EntityType.FINDING: lambda: {"title": fake.sentence(nb_words=4), "severity": "MEDIUM"},
    }

    async def _create(kind, org=None, **fields):
        kind = EntityType(kind)
        payload = {**defaults[kind](), **fields}
        return await store.create(org or org_id, kind, payload, actor_user_id=user_id)

    return _create


@pytest.fixture
def app(session_factory, recorder, aggregation):
    """FastAPI app wired to the per-test database"""
    from complyva.main import create_app
    from complyva.api.deps import get_recorder, get_aggregation_engine

    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_recorder] = lambda: recorder
    app.dependency_overrides[get_aggregation_engine] = lambda: aggregation
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
def admin_headers(org_id, user_id) -> dict:
    return {'X-Org-Id': org_id, 'X-User-Id': user_id, 'X-Role': 'ADMIN'}


@pytest.fixture
def viewer_headers(org_id) -> dict:
    return {'X-Org-Id': org_id, 'X-User-Id': generate_uuid(), 'X-Role': 'VIEWER'}
