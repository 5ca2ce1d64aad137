# tests/test_access.py
import unittest

from fluxo.core.access import AccessGate, AccessState, Permission, resolve_role
from fluxo.core.errors import PermissionDenied
from fluxo.core.models import AuthorizedUser, Role

USERS = [
    AuthorizedUser("a@x.com", Role.ADMIN),
    AuthorizedUser("Fin@X.com", Role.FINANCEIRO),
    AuthorizedUser("guest@x.com", Role.CONVIDADO),
]


class TestResolveRole(unittest.TestCase):
    def test_case_and_whitespace_insensitive(self):
        self.assertEqual(resolve_role(USERS, "A@X.com "), Role.ADMIN)
        self.assertEqual(resolve_role(USERS, "fin@x.com"), Role.FINANCEIRO)

    def test_unknown_email(self):
        self.assertIsNone(resolve_role(USERS, "outro@x.com"))
        self.assertIsNone(resolve_role(USERS, ""))


class TestAccessGate(unittest.TestCase):
    def setUp(self):
        self.gate = AccessGate()

    def test_starts_unknown(self):
        self.assertEqual(self.gate.state, AccessState.UNKNOWN)
        self.assertIsNone(self.gate.is_authorized)
        self.assertFalse(self.gate.can(Permission.EDIT_LEDGER))

    def test_resolve_authorized(self):
        self.assertEqual(self.gate.resolve(USERS, " A@X.COM"), AccessState.AUTHORIZED)
        self.assertTrue(self.gate.is_authorized)
        self.assertEqual(self.gate.role, Role.ADMIN)

    def test_resolve_denied(self):
        with self.assertLogs("fluxo.core.access", level="WARNING"):
            self.assertEqual(self.gate.resolve(USERS, "intruso@x.com"), AccessState.DENIED)
        self.assertFalse(self.gate.is_authorized)
        self.assertIsNone(self.gate.role)

    def test_reset(self):
        self.gate.resolve(USERS, "a@x.com")
        self.gate.reset()
        self.assertEqual(self.gate.state, AccessState.UNKNOWN)
        self.assertIsNone(self.gate.role)

    def test_local_admin(self):
        self.gate.grant_local_admin()
        self.assertTrue(all(self.gate.can(p) for p in Permission))

    def test_financeiro_permissions(self):
        self.gate.resolve(USERS, "fin@x.com")
        self.assertTrue(self.gate.can(Permission.EDIT_LEDGER))
        self.assertTrue(self.gate.can(Permission.MANAGE_SETTINGS))
        self.assertTrue(self.gate.can(Permission.MANAGE_DESCRIPTIONS))
        self.assertFalse(self.gate.can(Permission.MANAGE_ESTABLISHMENTS))
        self.assertFalse(self.gate.can(Permission.MANAGE_USERS))

    def test_convidado_is_read_only(self):
        self.gate.resolve(USERS, "guest@x.com")
        self.assertTrue(self.gate.is_authorized)
        self.assertFalse(any(self.gate.can(p) for p in Permission))
        with self.assertRaises(PermissionDenied) as ctx:
            self.gate.require(Permission.EDIT_LEDGER, "ADD_TRANSACTION")
        self.assertEqual(ctx.exception.role, Role.CONVIDADO)


if __name__ == "__main__":
    unittest.main()
