import unittest
from unittest.mock import patch

from catalog_admin.auth import SessionStore


class SessionStoreTests(unittest.TestCase):
    def test_create_and_destroy(self):
        sessions = SessionStore()
        session_id = sessions.create("user-1", "admin")
        self.assertEqual(sessions.get(session_id)["username"], "admin")

        sessions.destroy(session_id)
        self.assertIsNone(sessions.get(session_id))
        sessions.destroy(session_id)

    def test_ids_are_unique(self):
        sessions = SessionStore()
        self.assertNotEqual(
            sessions.create("user-1", "admin"), sessions.create("user-1", "admin")
        )

    def test_unknown_or_missing_id(self):
        sessions = SessionStore()
        self.assertIsNone(sessions.get(None))
        self.assertIsNone(sessions.get("forged"))

    def test_session_expires_after_max_age(self):
        sessions = SessionStore(max_age=60)
        with patch("catalog_admin.auth.time.time", return_value=1000.0):
            session_id = sessions.create("user-1", "admin")
        with patch("catalog_admin.auth.time.time", return_value=1061.0):
            self.assertIsNone(sessions.get(session_id))
        self.assertNotIn(session_id, sessions.sessions)


if __name__ == "__main__":
    unittest.main()
