"""Tests for the group blueprint."""

import unittest
from unittest.mock import MagicMock, patch

from suitematch import create_app
from suitematch.errors import AlreadyGrouped, GroupNotFound, ValidationError

MOCK_USER_ID = "user1"
MOCK_USER_DATA = {
    "name": "Group Leader",
    "school": "Pomona College",
    "is_grouped": True,
    "groupId": "g1",
}


class GroupRoutesFirebaseTestCase(unittest.TestCase):
    """Test case for the group blueprint."""

    def setUp(self):
        """Set up a test client and a comprehensive mock environment."""
        self.mock_firestore_service = MagicMock()
        self.mock_group_service = MagicMock()
        self.mock_membership_service = MagicMock()

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "firestore_routes": patch(
                "suitematch.group.routes.firestore", new=self.mock_firestore_service
            ),
            "firestore_app": patch(
                "suitematch.firestore", new=self.mock_firestore_service
            ),
            "group_service": patch(
                "suitematch.group.routes.GroupService", new=self.mock_group_service
            ),
            "membership_service": patch(
                "suitematch.group.routes.MembershipService",
                new=self.mock_membership_service,
            ),
        }

        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, "SERVER_NAME": "localhost"}
        )
        self.client = self.app.test_client()
        self.db = self.mock_firestore_service.client.return_value

    def _set_session_user(self, **overrides):
        with self.client.session_transaction() as sess:
            sess["user_id"] = MOCK_USER_ID
        data = dict(MOCK_USER_DATA, **overrides)
        user_snapshot = MagicMock()
        user_snapshot.exists = True
        user_snapshot.to_dict.return_value = data
        self.db.collection.return_value.document.return_value.get.return_value = (
            user_snapshot
        )

    def test_create_group(self):
        """Test successfully creating a new group."""
        self._set_session_user(is_grouped=False, groupId=None)
        self.mock_group_service.create_group.return_value = "new_group_id"

        response = self.client.post(
            "/group/create",
            json={"name": "Suite 4B", "description": "Quiet floor", "capacity": 4},
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["group_id"], "new_group_id")
        self.mock_group_service.create_group.assert_called_once_with(
            self.db, MOCK_USER_ID, "Suite 4B", "Quiet floor", 4
        )

    def test_create_group_rejects_zero_capacity(self):
        self._set_session_user(is_grouped=False, groupId=None)

        response = self.client.post(
            "/group/create", json={"name": "Suite 4B", "capacity": 0}
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("capacity", response.get_json()["message"])
        self.mock_group_service.create_group.assert_not_called()

    def test_create_group_when_already_grouped(self):
        self._set_session_user()
        self.mock_group_service.create_group.side_effect = AlreadyGrouped()

        response = self.client.post(
            "/group/create", json={"name": "Suite 4B", "capacity": 4}
        )

        self.assertEqual(response.status_code, 409)

    def test_view_group_not_found(self):
        self._set_session_user()
        self.mock_group_service.get_group.side_effect = GroupNotFound()

        response = self.client.get("/group/missing")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["message"], "Group not found.")

    def test_my_group(self):
        self._set_session_user()
        self.mock_group_service.get_group.return_value = {"id": "g1"}

        response = self.client.get("/group/mine")

        self.assertEqual(response.status_code, 200)
        self.mock_group_service.get_group.assert_called_once_with(self.db, "g1")

    def test_my_group_when_ungrouped(self):
        self._set_session_user(is_grouped=False, groupId=None)

        response = self.client.get("/group/mine")

        self.assertEqual(response.status_code, 409)

    def test_recommended_groups_use_configured_limit(self):
        self._set_session_user()
        self.mock_group_service.list_groups_by_school.return_value = []

        response = self.client.get("/group/recommended")

        self.assertEqual(response.status_code, 200)
        self.mock_group_service.list_groups_by_school.assert_called_once_with(
            self.db,
            "Pomona College",
            limit=self.app.config["GROUP_RECOMMENDATION_LIMIT"],
            exclude_group_id="g1",
        )

    def test_leave_group(self):
        self._set_session_user()
        self.mock_membership_service.leave_group.return_value = "user2"

        response = self.client.post("/group/g1/leave")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["new_leader"], "user2")
        self.mock_membership_service.leave_group.assert_called_once_with(
            self.db, MOCK_USER_ID, "g1"
        )

    def test_remove_self_is_rejected(self):
        self._set_session_user()
        self.mock_membership_service.remove_member.side_effect = ValidationError(
            "You cannot remove yourself. Leave the group instead."
        )

        response = self.client.post(f"/group/g1/remove/{MOCK_USER_ID}")

        self.assertEqual(response.status_code, 400)

    def test_delete_group(self):
        self._set_session_user()

        response = self.client.post("/group/g1/delete")

        self.assertEqual(response.status_code, 200)
        self.mock_group_service.delete_group.assert_called_once_with(
            self.db, MOCK_USER_ID, "g1"
        )


if __name__ == "__main__":
    unittest.main()
