import unittest

from flask import Flask

from snapfeed.security.credentials import hash_password, verify_password


class TestCredentials(unittest.TestCase):
    def test_sha256_credential_is_fixed_width_hex(self):
        credential = hash_password("secret1")
        self.assertEqual(len(credential), 64)
        self.assertTrue(all(ch in "0123456789abcdef" for ch in credential))
        self.assertEqual(len(hash_password("a much longer password than usual")), 64)

    def test_sha256_credential_is_deterministic(self):
        self.assertEqual(hash_password("secret1"), hash_password("secret1"))
        self.assertNotEqual(hash_password("secret1"), hash_password("secret2"))

    def test_verify_matches_only_the_original_password(self):
        credential = hash_password("pässwörd")
        self.assertTrue(verify_password("pässwörd", credential))
        self.assertFalse(verify_password("passwort", credential))
        self.assertFalse(verify_password("", credential))

    def test_verify_rejects_non_string_input(self):
        self.assertFalse(verify_password(None, hash_password("x")))
        self.assertFalse(verify_password("x", None))

    def test_werkzeug_scheme_is_salted_and_verifiable(self):
        first = hash_password("secret1", scheme="werkzeug")
        second = hash_password("secret1", scheme="werkzeug")
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("secret1", first))
        self.assertFalse(verify_password("secret2", second))

    def test_scheme_comes_from_app_config(self):
        app = Flask(__name__)
        app.config["PASSWORD_HASH_SCHEME"] = "werkzeug"
        with app.app_context():
            credential = hash_password("secret1")
        self.assertNotEqual(len(credential), 64)
        self.assertTrue(verify_password("secret1", credential))

    def test_unknown_scheme_in_config_is_rejected(self):
        app = Flask(__name__)
        app.config["PASSWORD_HASH_SCHEME"] = "md5"
        with app.app_context():
            with self.assertRaises(RuntimeError):
                hash_password("secret1")


if __name__ == "__main__":
    unittest.main()
