"""Tests that worker task endpoints require authentication.

Endpoints guarded by require_task_auth return 401 without credentials and
reach their handler when auth passes.
"""

from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from carrental.api.factory import create_app
from carrental.api.task_auth import verify_task_oidc

TASK_ROUTES = [
    ("/tasks/cars/reconcile-status", "carrental.api.routes.tasks_cars.reconcile_car_statuses"),
    (
        "/tasks/reservations/complete-ended",
        "carrental.api.routes.tasks_reservations.complete_ended_reservations",
    ),
]


@pytest.fixture
def worker_client():
    """Worker app client with no auth mock."""
    return TestClient(create_app(role="worker"))


@pytest.mark.parametrize("path,handler", TASK_ROUTES)
class TestTaskRoutesAuth:
    def test_no_auth_returns_401(self, worker_client, path, handler):
        with patch(handler) as sweep:
            response = worker_client.post(path)
        assert response.status_code == 401
        sweep.assert_not_called()

    def test_rejected_bearer_returns_401(self, worker_client, path, handler):
        with patch.dict(os.environ, {"TASKS_OIDC_AUDIENCE": "https://worker.example.com"}), \
             patch(
                 "carrental.api.task_auth.id_token.verify_oauth2_token",
                 side_effect=ValueError("Wrong number of segments"),
             ), \
             patch(handler) as sweep:
            response = worker_client.post(path, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        sweep.assert_not_called()

    def test_with_valid_auth_reaches_handler(self, worker_client, path, handler):
        with patch("carrental.api.task_auth.verify_task_auth", return_value=True):
            with patch(handler, return_value=0) as sweep:
                response = worker_client.post(path)
        assert response.status_code == 200
        assert response.json()["ok"] is True
        sweep.assert_called_once()


class TestLocalDevSecret:
    def test_internal_secret_accepted_for_local_audience(self, worker_client):
        env = {
            "TASKS_OIDC_AUDIENCE": "carrental-tasks-local",
            "INTERNAL_TASK_SECRET": "s3cret",
        }
        with patch.dict(os.environ, env):
            with patch("carrental.api.routes.tasks_cars.reconcile_car_statuses", return_value=2):
                response = worker_client.post(
                    "/tasks/cars/reconcile-status",
                    headers={"X-Internal-Task-Secret": "s3cret"},
                )
        assert response.status_code == 200
        assert response.json() == {"ok": True, "fixed": 2}

    def test_internal_secret_ignored_for_real_audience(self, worker_client):
        env = {
            "TASKS_OIDC_AUDIENCE": "https://worker.example.com",
            "INTERNAL_TASK_SECRET": "s3cret",
        }
        with patch.dict(os.environ, env):
            response = worker_client.post(
                "/tasks/cars/reconcile-status",
                headers={"X-Internal-Task-Secret": "s3cret"},
            )
        assert response.status_code == 401

    def test_wrong_secret_rejected(self, worker_client):
        env = {
            "TASKS_OIDC_AUDIENCE": "carrental-tasks-local",
            "INTERNAL_TASK_SECRET": "s3cret",
        }
        with patch.dict(os.environ, env):
            response = worker_client.post(
                "/tasks/cars/reconcile-status",
                headers={"X-Internal-Task-Secret": "guess"},
            )
        assert response.status_code == 401


class TestVerifyTaskOidc:
    def test_fails_closed_without_audience(self):
        with patch.dict(os.environ, {}, clear=True):
            assert verify_task_oidc("some.token.value") is False

    def test_valid_token(self):
        with patch.dict(os.environ, {"TASKS_OIDC_AUDIENCE": "aud"}, clear=True):
            with patch(
                "carrental.api.task_auth.id_token.verify_oauth2_token",
                return_value={"email": "scheduler@example.iam.gserviceaccount.com"},
            ) as verify:
                assert verify_task_oidc("tok") is True
        assert verify.call_args.kwargs["audience"] == "aud"

    def test_service_account_mismatch(self):
        env = {
            "TASKS_OIDC_AUDIENCE": "aud",
            "TASKS_OIDC_SERVICE_ACCOUNT": "scheduler@example.iam.gserviceaccount.com",
        }
        with patch.dict(os.environ, env, clear=True):
            with patch(
                "carrental.api.task_auth.id_token.verify_oauth2_token",
                return_value={"email": "someone-else@example.com"},
            ):
                assert verify_task_oidc("tok") is False

    def test_verification_error_returns_false(self):
        with patch.dict(os.environ, {"TASKS_OIDC_AUDIENCE": "aud"}, clear=True):
            with patch(
                "carrental.api.task_auth.id_token.verify_oauth2_token",
                side_effect=ValueError("bad signature"),
            ):
                assert verify_task_oidc("a.b.c") is False

    def test_empty_token(self):
        assert verify_task_oidc("") is False


def test_request_without_credentials_is_rejected():
    from carrental.api.task_auth import verify_task_auth

    request = MagicMock()
    request.headers = {}
    with patch.dict(os.environ, {}, clear=True):
        assert verify_task_auth(request) is False
