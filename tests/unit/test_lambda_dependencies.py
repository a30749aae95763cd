"""Unit tests for Lambda dependency factory."""

import os
from unittest.mock import MagicMock, Mock, patch

import pytest
from fastapi import FastAPI

import src.lambda_dependencies as deps
from src.lambda_dependencies import (
    get_dynamodb_resource,
    get_fastapi_app,
    get_token_service,
    initialize_lambda_environment,
)


def clear_caches() -> None:
    deps._dynamodb_resource = None
    deps._token_service = None
    deps._fastapi_app = None


@pytest.mark.unit
class TestGetDynamoDBResource:
    """Tests for get_dynamodb_resource function."""

    def teardown_method(self) -> None:
        """Clear cached resources after each test."""
        clear_caches()

    @patch.dict(os.environ, {"DYNAMODB_ENDPOINT": "", "AWS_REGION": "us-west-2"}, clear=True)
    @patch("hospital_meal_service.bootstrap.boto3.resource")
    def test_creates_aws_resource_when_no_endpoint(self, mock_boto3_resource: Mock) -> None:
        mock_resource = MagicMock()
        mock_boto3_resource.return_value = mock_resource

        result = get_dynamodb_resource()

        mock_boto3_resource.assert_called_once_with("dynamodb", region_name="us-west-2")
        assert result == mock_resource

    @patch.dict(
        os.environ,
        {
            "DYNAMODB_ENDPOINT": "http://localhost:8000",
            "AWS_REGION": "us-east-1",
            "AWS_ACCESS_KEY_ID": "test-key",
            "AWS_SECRET_ACCESS_KEY": "test-secret",
        },
        clear=True,
    )
    @patch("hospital_meal_service.bootstrap.boto3.resource")
    def test_creates_local_resource_when_endpoint_provided(self, mock_boto3_resource: Mock) -> None:
        get_dynamodb_resource()

        mock_boto3_resource.assert_called_once_with(
            "dynamodb",
            endpoint_url="http://localhost:8000",
            region_name="us-east-1",
            aws_access_key_id="test-key",
            aws_secret_access_key="test-secret",
        )

    @patch.dict(os.environ, {"DYNAMODB_ENDPOINT": ""}, clear=True)
    @patch("hospital_meal_service.bootstrap.boto3.resource")
    def test_caches_resource_for_reuse(self, mock_boto3_resource: Mock) -> None:
        """Test that DynamoDB resource is cached and reused across calls."""
        mock_boto3_resource.return_value = MagicMock()

        result1 = get_dynamodb_resource()
        result2 = get_dynamodb_resource()

        # Should only be created once
        mock_boto3_resource.assert_called_once()
        assert result1 is result2


@pytest.mark.unit
class TestGetTokenService:
    """Tests for get_token_service function."""

    def teardown_method(self) -> None:
        clear_caches()

    @patch.dict(os.environ, {"TOKEN_SECRET": "lambda-secret"}, clear=True)
    def test_caches_token_service(self) -> None:
        assert get_token_service() is get_token_service()

    @patch.dict(os.environ, {}, clear=True)
    def test_requires_secret(self) -> None:
        with pytest.raises(ValueError):
            get_token_service()


@pytest.mark.unit
class TestGetFastAPIApp:
    """Tests for get_fastapi_app function."""

    def teardown_method(self) -> None:
        clear_caches()

    @patch.dict(os.environ, {"ENVIRONMENT": "test", "TOKEN_SECRET": "lambda-secret"}, clear=True)
    @patch("src.lambda_dependencies.setup_observability")
    @patch("hospital_meal_service.bootstrap.boto3.resource")
    def test_builds_and_caches_app(self, mock_boto3_resource: Mock, mock_setup_observability: Mock) -> None:
        mock_boto3_resource.return_value = MagicMock()

        app = get_fastapi_app()

        assert isinstance(app, FastAPI)
        assert get_fastapi_app() is app
        mock_setup_observability.assert_called_once_with(app)
        assert app.state.token_service is get_token_service()


@pytest.mark.unit
class TestInitializeLambdaEnvironment:
    """Tests for initialize_lambda_environment function."""

    @patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}, clear=True)
    @patch("src.lambda_dependencies.configure_logging")
    def test_configures_logging(self, mock_configure_logging: Mock) -> None:
        initialize_lambda_environment()

        mock_configure_logging.assert_called_once_with("WARNING")
