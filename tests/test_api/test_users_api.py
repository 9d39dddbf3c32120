"""
Tests for Users API
====================

Tests user creation and notification preferences.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


# ==================== FIXTURES ====================

@pytest.fixture
def user_create_data():
    """Sample data for creating a user"""
    return {
        "name": "Sam Lee",
        "email": "Sam.Lee@Example.com"
    }


# ==================== TESTS ====================

class TestUsers:
    """Tests for user endpoints"""

    @pytest.mark.api
    def test_create_user(self, client: TestClient, user_create_data):
        """Test successful user creation with default preferences"""
        response = client.post("/api/v1/users/", json=user_create_data)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "sam.lee@example.com"
        assert data["notify_push"] is True
        assert data["notify_calendar"] is False

    @pytest.mark.api
    def test_create_user_duplicate_email(self, client: TestClient, test_user):
        """Test duplicate email returns 409"""
        response = client.post("/api/v1/users/", json={"name": "Copy", "email": test_user.email})

        assert response.status_code == status.HTTP_409_CONFLICT

    @pytest.mark.api
    def test_create_user_invalid_email(self, client: TestClient):
        """Test invalid email fails validation"""
        response = client.post("/api/v1/users/", json={"name": "X", "email": "not-an-email"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_get_user(self, client: TestClient, test_user):
        """Test fetching a user"""
        response = client.get(f"/api/v1/users/{test_user.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == test_user.name

    @pytest.mark.api
    def test_get_user_not_found(self, client: TestClient):
        """Test unknown user returns 404"""
        response = client.get("/api/v1/users/9999")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_update_notifications(self, client: TestClient, test_user):
        """Test partial preference update"""
        response = client.put(
            f"/api/v1/users/{test_user.id}/notifications",
            json={"notify_push": False}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["notify_push"] is False
        assert data["notify_email"] is True
