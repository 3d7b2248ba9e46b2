"""
Principal Store Tests

Module: tests.test_principal_store
Date: 2026-10-17
Version: 0.1.0

DESCRIPTION:
Both backends run the same behavioural suite:
- Lookup by id, any-of credential lookup, reset digest lookup
- Returned records are copies
- Refresh token compare-and-set
JSON backend additionally: persistence across instances, file permissions
"""

import os
import stat
import tempfile
import threading
import unittest
from datetime import datetime, timezone

from principal_auth.persistence.principal_store import (
    InMemoryPrincipalStore,
    JSONPrincipalStore,
    PrincipalRecord,
)

from auth_fixtures import START_TIME, make_principal


class PrincipalStoreContract:
    """Mixin: behaviour every PrincipalStore backend shares"""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()
        self.alice = make_principal(self.store)
        self.bob = make_principal(
            self.store, email="bob@example.com", phone="+15550000002", first_name="Bob"
        )

    def test_find_by_id(self):
        found = self.store.find_by_id(self.alice.principal_id)
        self.assertEqual(found.email, "alice@example.com")
        self.assertIsNone(self.store.find_by_id("missing"))

    def test_lookup_any_of(self):
        by_email = self.store.find_by_credential_lookup({"email": "bob@example.com"})
        by_phone = self.store.find_by_credential_lookup({"phone": "+15550000002"})
        either = self.store.find_by_credential_lookup(
            {"email": "nobody@example.com", "phone": "+15550000001"}
        )

        self.assertEqual(by_email.principal_id, self.bob.principal_id)
        self.assertEqual(by_phone.principal_id, self.bob.principal_id)
        self.assertEqual(either.principal_id, self.alice.principal_id)

    def test_lookup_ignores_empty_and_unknown_fields(self):
        self.assertIsNone(self.store.find_by_credential_lookup({"email": "nobody@example.com"}))
        self.assertIsNone(self.store.find_by_credential_lookup({"email": None, "phone": ""}))
        self.assertIsNone(self.store.find_by_credential_lookup({"first_name": "Alice"}))

    def test_returned_records_are_copies(self):
        found = self.store.find_by_id(self.alice.principal_id)
        found.email = "changed@example.com"

        self.assertEqual(self.store.find_by_id(self.alice.principal_id).email, "alice@example.com")

        self.store.save(found)
        self.assertEqual(self.store.find_by_id(self.alice.principal_id).email, "changed@example.com")

    def test_reset_digest_lookup(self):
        self.alice.reset_token_digest = "d" * 64
        self.alice.reset_token_expiry = START_TIME + 100
        self.store.save(self.alice)

        found = self.store.find_by_reset_digest("d" * 64, START_TIME)
        self.assertEqual(found.principal_id, self.alice.principal_id)
        self.assertIsNone(self.store.find_by_reset_digest("d" * 64, START_TIME + 100))
        self.assertIsNone(self.store.find_by_reset_digest("e" * 64, START_TIME))

    def test_swap_refresh_token(self):
        pid = self.alice.principal_id

        self.assertTrue(self.store.swap_refresh_token(pid, None, "t1"))
        self.assertFalse(self.store.swap_refresh_token(pid, None, "t2"))
        self.assertTrue(self.store.swap_refresh_token(pid, "t1", "t2"))
        self.assertEqual(self.store.find_by_id(pid).active_refresh_token, "t2")
        self.assertTrue(self.store.swap_refresh_token(pid, "t2", None))
        self.assertIsNone(self.store.find_by_id(pid).active_refresh_token)

    def test_swap_unknown_principal(self):
        self.assertFalse(self.store.swap_refresh_token("missing", None, "t1"))

    def test_swap_leaves_other_fields(self):
        self.store.swap_refresh_token(self.alice.principal_id, None, "t1")
        found = self.store.find_by_id(self.alice.principal_id)
        self.assertEqual(found.credential_hash, "placeholder")
        self.assertEqual(found.first_name, "Alice")

    def test_list_principals(self):
        ids = {p.principal_id for p in self.store.list_principals()}
        self.assertEqual(ids, {self.alice.principal_id, self.bob.principal_id})

    def test_update_fields(self):
        pid = self.alice.principal_id
        when = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

        self.assertTrue(self.store.update_fields(pid, {"last_login": when, "first_name": "Alicia"}))

        found = self.store.find_by_id(pid)
        self.assertEqual(found.last_login, when)
        self.assertEqual(found.first_name, "Alicia")
        self.assertEqual(found.credential_hash, "placeholder")

    def test_update_fields_expected_mismatch_writes_nothing(self):
        pid = self.alice.principal_id

        self.assertFalse(self.store.update_fields(
            pid,
            {"credential_hash": "new-hash", "active_refresh_token": None},
            expected={"credential_hash": "other", "account_status": "active"},
        ))
        self.assertEqual(self.store.find_by_id(pid).credential_hash, "placeholder")

        self.assertTrue(self.store.update_fields(
            pid, {"credential_hash": "new-hash"}, expected={"credential_hash": "placeholder"}
        ))
        self.assertEqual(self.store.find_by_id(pid).credential_hash, "new-hash")

    def test_update_fields_unknown_principal(self):
        self.assertFalse(self.store.update_fields("missing", {"first_name": "X"}))

    def test_update_fields_rejects_unknown_field(self):
        for field in ("principal_id", "created_at", "nickname"):
            with self.subTest(field=field):
                with self.assertRaises(ValueError):
                    self.store.update_fields(self.alice.principal_id, {field: "x"})

    def set_reset(self, digest="d" * 64, expiry=START_TIME + 3600):
        self.store.update_fields(
            self.alice.principal_id,
            {"reset_token_digest": digest, "reset_token_expiry": expiry, "active_refresh_token": "t1"},
        )

    def test_complete_reset(self):
        pid = self.alice.principal_id
        self.set_reset()

        self.assertTrue(self.store.complete_reset(pid, "d" * 64, START_TIME, "new-hash"))
        self.assertFalse(self.store.complete_reset(pid, "d" * 64, START_TIME, "again"))

        found = self.store.find_by_id(pid)
        self.assertEqual(found.credential_hash, "new-hash")
        self.assertIsNone(found.active_refresh_token)
        self.assertIsNone(found.reset_token_digest)
        self.assertIsNone(found.reset_token_expiry)

    def test_complete_reset_rejected(self):
        pid = self.alice.principal_id
        self.set_reset()

        self.assertFalse(self.store.complete_reset(pid, "e" * 64, START_TIME, "new-hash"))
        self.assertFalse(self.store.complete_reset(pid, "d" * 64, START_TIME + 3600, "new-hash"))
        self.assertFalse(self.store.complete_reset("missing", "d" * 64, START_TIME, "new-hash"))

        found = self.store.find_by_id(pid)
        self.assertEqual(found.credential_hash, "placeholder")
        self.assertEqual(found.active_refresh_token, "t1")
        self.assertEqual(found.reset_token_digest, "d" * 64)

    def test_clear_reset_only_pending_digest(self):
        pid = self.alice.principal_id
        self.set_reset()

        self.assertFalse(self.store.clear_reset(pid, "e" * 64))
        self.assertEqual(self.store.find_by_id(pid).reset_token_digest, "d" * 64)

        self.assertTrue(self.store.clear_reset(pid, "d" * 64))
        found = self.store.find_by_id(pid)
        self.assertIsNone(found.reset_token_digest)
        self.assertIsNone(found.reset_token_expiry)

    def test_concurrent_field_updates_both_land(self):
        pid = self.alice.principal_id
        barrier = threading.Barrier(2, timeout=10)

        def update(changes):
            barrier.wait()
            self.store.update_fields(pid, changes)

        threads = [
            threading.Thread(target=update, args=({"first_name": "Alicia"},)),
            threading.Thread(target=update, args=({"account_status": "suspended"},)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        found = self.store.find_by_id(pid)
        self.assertEqual(found.first_name, "Alicia")
        self.assertEqual(found.account_status, "suspended")



class TestInMemoryPrincipalStore(PrincipalStoreContract, unittest.TestCase):

    def make_store(self):
        return InMemoryPrincipalStore()


class TestJSONPrincipalStore(PrincipalStoreContract, unittest.TestCase):

    def make_store(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        return JSONPrincipalStore(self.tmpdir.name)

    def test_persists_across_instances(self):
        self.store.swap_refresh_token(self.alice.principal_id, None, "t1")

        reopened = JSONPrincipalStore(self.tmpdir.name)
        found = reopened.find_by_id(self.alice.principal_id)

        self.assertEqual(found.active_refresh_token, "t1")
        self.assertEqual(found.created_at, self.alice.created_at)

    def test_file_permissions(self):
        path = os.path.join(self.tmpdir.name, "principals.json")
        mode = stat.S_IMODE(os.stat(path).st_mode)
        self.assertEqual(mode, 0o600)


class TestPrincipalRecord(unittest.TestCase):
    """Serialization"""

    def setUp(self):
        self.record = PrincipalRecord.new(
            credential_hash="scrypt:1024:8:1$aa$bb",
            email="alice@example.com",
            phone="+15550000001",
            first_name="Alice",
            last_name="Smith",
            role="chef",
            active_refresh_token="refresh",
            reset_token_digest="digest",
            reset_token_expiry=START_TIME,
        )

    def test_new_assigns_unique_ids(self):
        other = PrincipalRecord.new(credential_hash="x")
        self.assertEqual(len(self.record.principal_id), 32)
        self.assertNotEqual(self.record.principal_id, other.principal_id)

    def test_dict_round_trip(self):
        restored = PrincipalRecord.from_dict(self.record.to_dict())
        self.assertEqual(restored.to_dict(), self.record.to_dict())

    def test_public_dict_has_no_secrets(self):
        public = self.record.to_public_dict()

        self.assertEqual(public["id"], self.record.principal_id)
        self.assertEqual(public["firstName"], "Alice")
        self.assertEqual(public["role"], "chef")
        text = str(public)
        for secret in ("scrypt", "refresh", "digest"):
            self.assertNotIn(secret, text)

    def test_display_name(self):
        self.assertEqual(self.record.display_name, "Alice Smith")
        self.assertEqual(PrincipalRecord.new("x", email="a@b.c").display_name, "a@b.c")


if __name__ == "__main__":
    unittest.main()
