import unittest
from unittest.mock import MagicMock, patch

from google.api_core.exceptions import ServiceUnavailable

from suitematch import create_app
from suitematch.core.transactions import run_transaction
from suitematch.errors import GroupFull, StoreUnavailable


class AppTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app({"TESTING": True, "SERVER_NAME": "localhost"})
        self.client = self.app.test_client()

    def test_config_defaults(self):
        self.assertTrue(self.app.config["TESTING"])
        self.assertEqual(self.app.config["GROUP_RECOMMENDATION_LIMIT"], 6)

    def test_unknown_route_returns_json_404(self):
        response = self.client.get("/no/such/route")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["status"], "error")

    def test_csrf_is_enforced_outside_tests(self):
        app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": True})
        response = app.test_client().post("/auth/logout")
        self.assertEqual(response.status_code, 400)


class RunTransactionTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app({"TESTING": True})
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)
        self.db = MagicMock()

    @patch("suitematch.core.transactions.firestore.transactional")
    def test_application_errors_propagate(self, mock_transactional):
        mock_transactional.return_value.side_effect = GroupFull()
        with self.assertRaises(GroupFull):
            run_transaction(self.db, MagicMock())

    @patch("suitematch.core.transactions.firestore.transactional")
    def test_api_errors_become_store_unavailable(self, mock_transactional):
        mock_transactional.return_value.side_effect = ServiceUnavailable("down")
        with self.assertRaises(StoreUnavailable):
            run_transaction(self.db, MagicMock())

    @patch("suitematch.core.transactions.firestore.transactional")
    def test_exhausted_retries_become_store_unavailable(self, mock_transactional):
        error = ValueError("Failed to commit transaction in 5 attempts.")
        error.__cause__ = ServiceUnavailable("contention")
        mock_transactional.return_value.side_effect = error
        with self.assertRaises(StoreUnavailable):
            run_transaction(self.db, MagicMock())

    @patch("suitematch.core.transactions.firestore.transactional")
    def test_passes_transaction_and_args(self, mock_transactional):
        mock_transactional.return_value.return_value = "ok"
        func = MagicMock()

        result = run_transaction(self.db, func, "a", "b")

        self.assertEqual(result, "ok")
        mock_transactional.assert_called_once_with(func)
        mock_transactional.return_value.assert_called_once_with(
            self.db.transaction.return_value, "a", "b"
        )


if __name__ == "__main__":
    unittest.main()
