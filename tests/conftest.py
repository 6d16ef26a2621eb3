"""Pytest configuration and fixtures."""

import json
import os

import pytest

# Set environment variables before imports
os.environ["TABLE_NAME"] = "flashsynch-test"
os.environ["STAGE"] = "test"
os.environ["PUBLIC_BASE_URL"] = "https://flashsynch.test"
os.environ["FRONTEND_URL"] = "https://app.flashsynch.test"
os.environ["FIREBASE_PROJECT_ID"] = "flashsynch-test"
os.environ["REVENUECAT_WEBHOOK_SECRET"] = "whsec-test"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ.pop("QRSYNCH_API_KEY", None)
os.environ.pop("SES_FROM_EMAIL", None)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Rebuild cached settings so per-test environment changes apply."""
    from flashsynch.config import get_settings
    from flashsynch.services.identity import get_identity_verifier

    get_settings.cache_clear()
    get_identity_verifier.cache_clear()
    yield
    get_settings.cache_clear()
    get_identity_verifier.cache_clear()


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def dynamodb_table(aws_credentials):
    """Create mocked DynamoDB table."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")

        table = dynamodb.create_table(
            TableName="flashsynch-test",
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
                {"AttributeName": "GSI1PK", "AttributeType": "S"},
                {"AttributeName": "GSI1SK", "AttributeType": "S"},
                {"AttributeName": "GSI2PK", "AttributeType": "S"},
                {"AttributeName": "GSI2SK", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "GSI1",
                    "KeySchema": [
                        {"AttributeName": "GSI1PK", "KeyType": "HASH"},
                        {"AttributeName": "GSI1SK", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
                {
                    "IndexName": "GSI2",
                    "KeySchema": [
                        {"AttributeName": "GSI2PK", "KeyType": "HASH"},
                        {"AttributeName": "GSI2SK", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            BillingMode="PAY_PER_REQUEST",
        )

        table.wait_until_exists()

        yield table


@pytest.fixture
def owner(dynamodb_table):
    """Create a registered card owner."""
    from flashsynch.services.user_service import UserService
    from flashsynch.utils.auth import AuthContext

    user, _ = UserService().register(
        AuthContext(subject_id="test-user-123", email="ada@example.com", name="Ada Lovelace")
    )
    return user


@pytest.fixture
def other_user(dynamodb_table):
    """Create a second user who owns nothing."""
    from flashsynch.services.user_service import UserService
    from flashsynch.utils.auth import AuthContext

    user, _ = UserService().register(
        AuthContext(subject_id="other-user-456", email="grace@example.com", name="Grace Hopper")
    )
    return user


@pytest.fixture
def card_service(dynamodb_table):
    """Card service with short links disabled."""
    from flashsynch.config import get_settings
    from flashsynch.services.card_service import CardService
    from flashsynch.services.short_links import ShortLinkClient

    return CardService(short_links=ShortLinkClient.from_settings(get_settings()))


@pytest.fixture
def sample_card_request():
    """A typical create-card request."""
    from flashsynch.models.card import CreateCardRequest

    return CreateCardRequest.model_validate(
        {
            "profile": {
                "first_name": "Ada",
                "last_name": "Lovelace",
                "title": "Analyst",
                "company": "Analytical Engines",
            },
            "links": [
                {
                    "type": "email",
                    "label": "Email",
                    "value": "ada@example.com",
                    "icon": "mail",
                    "order": 0,
                },
                {
                    "type": "website",
                    "label": "Website",
                    "value": "https://ada.example.com",
                    "icon": "globe",
                    "order": 1,
                },
            ],
        }
    )


@pytest.fixture
def sample_card(card_service, owner, sample_card_request):
    """Create a sample active card owned by ``owner``."""
    return card_service.create_card(owner, sample_card_request)


@pytest.fixture
def api_gateway_event():
    """Create a sample API Gateway event."""
    def _create_event(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        query_params: dict = None,
        body: dict = None,
        headers: dict = None,
        user_id: str | None = "test-user-123",
        email: str = "ada@example.com",
        name: str = "Ada Lovelace",
    ):
        event_headers = {
            "Authorization": "Bearer test-token",
            "Content-Type": "application/json",
        }
        event_headers.update(headers or {})

        authorizer = {"userId": user_id, "email": email, "name": name} if user_id else {}

        return {
            "httpMethod": method,
            "path": path,
            "pathParameters": path_params or {},
            "queryStringParameters": query_params or {},
            "body": body if isinstance(body, str) else (json.dumps(body) if body else None),
            "headers": event_headers,
            "requestContext": {
                "authorizer": authorizer,
                "identity": {"sourceIp": "203.0.113.10"},
            },
        }

    return _create_event


class LambdaContext:
    """Mock Lambda context."""

    def __init__(self):
        self.function_name = "test-function"
        self.memory_limit_in_mb = 128
        self.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789:function:test"
        self.aws_request_id = "test-request-id"

    def get_remaining_time_in_millis(self):
        return 30000


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context."""
    return LambdaContext()
