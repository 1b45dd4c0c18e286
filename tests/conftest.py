# Vidly Live API Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - Test database provisioning (ephemeral SQLite per test run)
# - Seed data (desk user, bearer token, movies, customers)
# - Authentication helpers
# - Failure message formatting
#
# These tests talk to a running Flask server over HTTP. The in-process
# suite lives in backend/tests.

import os
import sys
import time
import tempfile
import subprocess
import shutil
from pathlib import Path
from typing import Generator, Optional, Dict, Any
from dataclasses import dataclass, field
from urllib.parse import urlparse

import pytest
import httpx

# Add backend to path for imports
REPO_ROOT = Path(__file__).parent.parent
BACKEND_DIR = REPO_ROOT / "backend"
sys.path.insert(0, str(BACKEND_DIR))


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class TestConfig:
    """Test configuration with environment variable overrides."""
    backend_base_url: str = os.environ.get("TEST_BACKEND_URL", "http://127.0.0.1:5001")

    # Timeouts
    request_timeout: float = float(os.environ.get("TEST_REQUEST_TIMEOUT", "30"))
    server_startup_timeout: float = float(os.environ.get("TEST_SERVER_STARTUP_TIMEOUT", "30"))

    @property
    def port(self) -> int:
        return urlparse(self.backend_base_url).port or 5001


@dataclass
class SeedData:
    """IDs and credentials created before the server starts."""
    token: str
    spare_token: Optional[str]
    customer_id: int
    movie_id: int
    movie_rate: float
    extra_customer_ids: list = field(default_factory=list)


# =============================================================================
# FAILURE REPORTS
# =============================================================================

# Likely cause per status code, as seen from the returns desk
STATUS_HINTS = {
    400: "Bad customerId/movieId, movie out of stock, or rental already returned",
    401: "Token missing, unknown, revoked or past its idle/absolute timeout",
    404: "No rental for this customer/movie pair, or the movie row is gone",
    500: "Unhandled error - see the server log for the traceback",
    503: "Health check could not query the database",
}


class TestFailure(Exception):
    """
    Assertion error that prints the scenario, the expectation and the
    server's answer, plus where to start looking.
    """

    def __init__(
        self,
        scenario: str,
        expected: str,
        actual: str,
        likely_cause: str,
        code_location: str,
        response: Optional[httpx.Response] = None,
    ):
        self.response = response
        rule = "-" * 80
        parts = [
            "",
            f"SCENARIO: {scenario}",
            rule,
            f"EXPECTED: {expected}",
            f"ACTUAL: {actual}",
            f"LIKELY CAUSE: {likely_cause}",
            f"LOOK AT: {code_location}",
        ]
        if response is not None:
            parts += [rule, f"{response.request.method} {response.request.url} -> {response.status_code}",
                      response.text[:1000]]
        super().__init__("\n".join(parts))


def assert_response(
    response: httpx.Response,
    expected_status: int,
    scenario: str,
    code_location: str,
    expected_body_contains: Optional[str] = None
):
    """Raise TestFailure unless the status (and optional body text) match."""
    if response.status_code != expected_status:
        raise TestFailure(
            scenario=scenario,
            expected=f"HTTP {expected_status}",
            actual=f"HTTP {response.status_code}",
            likely_cause=STATUS_HINTS.get(response.status_code, "Unexpected status code"),
            code_location=code_location,
            response=response
        )

    if expected_body_contains and expected_body_contains not in response.text:
        raise TestFailure(
            scenario=scenario,
            expected=f"Body mentions {expected_body_contains!r}",
            actual=response.text[:500],
            likely_cause="Error payload changed shape",
            code_location=code_location,
            response=response
        )


# =============================================================================
# HTTP CLIENT
# =============================================================================

class APIClient:
    """httpx client bound to the server under test, carrying an optional bearer token."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout)
        self.token: Optional[str] = None

    def request(self, method: str, path: str, headers: Optional[Dict] = None, **kwargs) -> httpx.Response:
        merged = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        merged.update(headers or {})
        return self.client.request(method, f"{self.base_url}{path}", headers=merged, **kwargs)

    def get(self, path: str, **kwargs) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, json: Optional[Any] = None, **kwargs) -> httpx.Response:
        return self.request("POST", path, json=json, **kwargs)

    def checkout(self, customer_id: int, movie_id: int) -> Dict:
        """Open a rental and return its JSON body."""
        response = self.post("/api/rentals", json={"customerId": customer_id, "movieId": movie_id})
        assert_response(
            response, 201,
            scenario=f"Checkout of movie {movie_id} by customer {customer_id}",
            code_location="backend/vidly/routes/rentals.py:create_rental_route"
        )
        return response.json()

    def return_movie(self, customer_id: Any, movie_id: Any, **kwargs) -> httpx.Response:
        return self.post("/api/returns", json={"customerId": customer_id, "movieId": movie_id}, **kwargs)

    def validate_session(self) -> bool:
        return bool(self.token) and self.post("/api/auth/validate").status_code == 200

    def close(self):
        self.client.close()


# =============================================================================
# SERVER MANAGEMENT
# =============================================================================

class ServerManager:
    """
    Manages Flask backend server lifecycle for tests.
    """

    def __init__(self, config: TestConfig):
        self.config = config
        self.process: Optional[subprocess.Popen] = None
        self.db_file: Optional[Path] = None
        self.seed: Optional[SeedData] = None

    @property
    def db_url(self) -> str:
        return f"sqlite:///{self.db_file}"

    def start(self) -> bool:
        """Start the Flask server against the provisioned database."""
        env = os.environ.copy()
        env["DATABASE_URL"] = self.db_url

        self.process = subprocess.Popen(
            [sys.executable, "-m", "flask", "--app", "wsgi", "run", "--port", str(self.config.port)],
            cwd=str(BACKEND_DIR),
            env=env,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

        return self._wait_for_server()

    def _wait_for_server(self) -> bool:
        """Wait for server to be responsive."""
        start_time = time.time()
        while time.time() - start_time < self.config.server_startup_timeout:
            try:
                response = httpx.get(f"{self.config.backend_base_url}/health", timeout=2.0)
                if response.status_code in (200, 503):  # 503 means degraded but running
                    return True
            except (httpx.ConnectError, httpx.TimeoutException):
                pass
            time.sleep(0.5)
        return False

    def stop(self):
        """Stop the Flask server and cleanup."""
        if self.process:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
            self.process = None

        if self.db_file and self.db_file.parent.exists():
            shutil.rmtree(self.db_file.parent, ignore_errors=True)

    def initialize_db(self) -> SeedData:
        """
        Create the schema and seed data in a fresh SQLite file.
        Runs in-process before the server starts.
        """
        from vidly import create_app
        from vidly.extensions import db
        from vidly.models import Customer, Genre, Movie, User
        from vidly.services.session_service import create_session

        temp_dir = tempfile.mkdtemp(prefix="vidly_test_")
        self.db_file = Path(temp_dir) / "test_vidly.sqlite3"

        app = create_app({"SQLALCHEMY_DATABASE_URI": self.db_url})

        with app.app_context():
            db.create_all()

            user = User(username="desk", email="desk@vidly.test", is_active=True)
            genre = Genre(name="Action")
            db.session.add_all([user, genre])
            db.session.commit()

            movie = Movie(title="Die Hard", genre_id=genre.id, number_in_stock=100, daily_rental_rate=2.0)
            customers = [Customer(name=f"Customer {n}", phone=f"555-01{n:02d}") for n in range(1, 6)]
            db.session.add(movie)
            db.session.add_all(customers)
            db.session.commit()

            _, token = create_session(user.id, user_agent="live-tests")
            _, spare_token = create_session(user.id, user_agent="live-tests")

            seed = SeedData(
                token=token,
                spare_token=spare_token,
                customer_id=customers[0].id,
                movie_id=movie.id,
                movie_rate=float(movie.daily_rental_rate),
                extra_customer_ids=[c.id for c in customers[1:]],
            )

            db.session.remove()
            db.engine.dispose()

        return seed


# =============================================================================
# PYTEST FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration."""
    return TestConfig()


@pytest.fixture(scope="session")
def server_manager(test_config: TestConfig) -> Generator[ServerManager, None, None]:
    """
    Manage test server lifecycle.
    Server is started once per test session.
    """
    manager = ServerManager(test_config)

    # For CI/external server mode, don't manage server
    if os.environ.get("TEST_EXTERNAL_SERVER"):
        yield manager
    else:
        manager.seed = manager.initialize_db()
        if not manager.start():
            manager.stop()
            pytest.fail("Failed to start test server")
        yield manager
        manager.stop()


@pytest.fixture(scope="session")
def seed(server_manager: ServerManager) -> SeedData:
    """
    Seed data for the session.
    External servers must provide TEST_AUTH_TOKEN, TEST_CUSTOMER_ID and TEST_MOVIE_ID.
    """
    if not os.environ.get("TEST_EXTERNAL_SERVER"):
        return server_manager.seed

    token = os.environ.get("TEST_AUTH_TOKEN")
    customer_id = os.environ.get("TEST_CUSTOMER_ID")
    movie_id = os.environ.get("TEST_MOVIE_ID")
    if not (token and customer_id and movie_id):
        pytest.skip("External server mode needs TEST_AUTH_TOKEN, TEST_CUSTOMER_ID and TEST_MOVIE_ID")

    return SeedData(
        token=token,
        spare_token=os.environ.get("TEST_SPARE_TOKEN"),
        customer_id=int(customer_id),
        movie_id=int(movie_id),
        movie_rate=float(os.environ.get("TEST_MOVIE_RATE", "2")),
    )


@pytest.fixture(scope="session")
def api_client(test_config: TestConfig, server_manager: ServerManager) -> Generator[APIClient, None, None]:
    """Provide API client shared across the session."""
    client = APIClient(test_config.backend_base_url, timeout=test_config.request_timeout)
    yield client
    client.close()


@pytest.fixture
def client(api_client: APIClient) -> APIClient:
    """
    Provide API client for each test.
    Clears any existing auth state.
    """
    api_client.token = None
    return api_client


@pytest.fixture
def desk_client(client: APIClient, seed: SeedData) -> APIClient:
    """Provide client authenticated as the seeded desk user."""
    client.token = seed.token
    return client


# =============================================================================
# TEST MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "smoke: Quick smoke tests for critical paths")
    config.addinivalue_line("markers", "full: Full regression tests")
    config.addinivalue_line("markers", "auth: Authentication tests")
    config.addinivalue_line("markers", "rentals: Rental checkout tests")
    config.addinivalue_line("markers", "returns: Return processing tests")
    config.addinivalue_line("markers", "concurrent: Concurrency tests")
