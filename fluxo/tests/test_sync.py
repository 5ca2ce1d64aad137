# tests/test_sync.py
import dataclasses
import datetime
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from fluxo.core.access import AccessState
from fluxo.core.errors import InvalidTransfer, TransportFailure
from fluxo.core.gateway import Action, SheetGateway
from fluxo.core.models import (
    AppSettings, AuthorizedUser, Establishment, Role, Transaction, TransactionType, UserProfile,
)
from fluxo.core.session import LocalStorage, SessionStore
from fluxo.core.sync import SyncOrchestrator, SyncStatus

NOW = datetime.datetime(2025, 7, 7, 12, 0, 0)


def tx_dict(tx_id, est_id="1", kind="Entrada", amount=100, date="2025-07-07"):
    return {
        "id": tx_id,
        "date": date,
        "establishmentId": est_id,
        "type": kind,
        "amount": amount,
        "description": f"lançamento {tx_id}",
        "status": "Aprovado",
    }


def make_payload(transactions=(), users=None, settings=None):
    payload = {
        "establishments": [{"id": "1", "name": "Hotel"}, {"id": "2", "name": "Cantina"}],
        "transactions": list(transactions),
        "authorizedUsers": users if users is not None else [
            {"email": "admin@rede.com", "role": "Admin"},
            {"email": "fin@rede.com", "role": "Financeiro"},
            {"email": "guest@rede.com", "role": "Convidado"},
        ],
    }
    if settings is not None:
        payload["settings"] = settings
    return payload


class TestSyncOrchestrator(unittest.TestCase):
    def setUp(self):
        self.gateway = MagicMock(spec=SheetGateway)
        self.gateway.fetch_snapshot.return_value = make_payload([tx_dict("t1")])
        self.gateway.post_action.return_value = True
        self.client = SyncOrchestrator(self.gateway, now=lambda: NOW)

    def login(self, email="fin@rede.com"):
        self.assertTrue(self.client.login(UserProfile(email=email)))

    # --- Sincronização ---

    def test_trigger_sync_replaces_cache(self):
        self.assertTrue(self.client.trigger_sync())
        self.assertEqual([t.id for t in self.client.store.transactions], ["t1"])
        self.assertEqual(self.client.status, SyncStatus.IDLE)
        self.assertEqual(self.client.last_sync, NOW)
        # Sem usuário logado o acesso continua indefinido
        self.assertEqual(self.client.access.state, AccessState.UNKNOWN)

    def test_failed_sync_keeps_cache_and_access(self):
        self.login()
        before = self.client.store.state
        self.gateway.fetch_snapshot.side_effect = TransportFailure("offline")

        with self.assertLogs("fluxo.core.sync", level="ERROR"):
            self.assertFalse(self.client.trigger_sync())

        self.assertIs(self.client.store.state, before)
        self.assertTrue(self.client.sync_error)
        self.assertEqual(self.client.role, Role.FINANCEIRO)

    def test_malformed_optional_section_does_not_lock_status(self):
        self.login()
        before = self.client.store.state
        self.gateway.fetch_snapshot.return_value = make_payload(users=True)

        with self.assertLogs("fluxo.core.sync", level="ERROR"):
            self.assertFalse(self.client.trigger_sync())

        self.assertIs(self.client.store.state, before)
        self.assertEqual(self.client.status, SyncStatus.ERROR)
        self.assertFalse(self.client.is_syncing)

        # A próxima busca válida volta ao normal
        self.gateway.fetch_snapshot.return_value = make_payload([tx_dict("t1")])
        self.assertTrue(self.client.trigger_sync())
        self.assertEqual(self.client.status, SyncStatus.IDLE)

    def test_unexpected_error_does_not_lock_status(self):
        self.gateway.fetch_snapshot.side_effect = RuntimeError("boom")
        with self.assertRaises(RuntimeError):
            self.client.trigger_sync()
        self.assertEqual(self.client.status, SyncStatus.ERROR)

    def test_login_resolves_role_case_insensitive(self):
        self.login("  FIN@Rede.com ")
        self.assertEqual(self.client.access.state, AccessState.AUTHORIZED)
        self.assertEqual(self.client.role, Role.FINANCEIRO)

    def test_login_denied_keeps_data(self):
        self.login("intruso@rede.com")
        self.assertEqual(self.client.access.state, AccessState.DENIED)
        self.assertEqual(len(self.client.store.transactions), 1)
        self.assertFalse(self.client.add_transaction(Transaction.create("1", TransactionType.ENTRADA, 1, "x")))

    def test_logout(self):
        self.login()
        self.client.logout()
        self.assertIsNone(self.client.user)
        self.assertEqual(self.client.access.state, AccessState.UNKNOWN)
        self.assertEqual(self.client.acting_email, "unknown")

    # --- Mutações ---

    def test_add_transaction_optimistic_then_reconcile(self):
        self.login()
        new = Transaction.create("2", TransactionType.SAIDA, 40, "Gás")
        seen = {}

        def fake_post(action, payload, user):
            # No momento do envio o lançamento já está no cache, pendente
            seen["ids"] = [t.id for t in self.client.store.transactions]
            seen["pending"] = self.client.pending_count
            seen["payload"] = payload
            seen["user"] = user
            return True

        self.gateway.post_action.side_effect = fake_post
        server = make_payload([tx_dict(new.id, "2", "Saída", 40), tx_dict("t1")])
        self.gateway.fetch_snapshot.return_value = server

        self.assertTrue(self.client.add_transaction(new))

        self.assertEqual(seen["ids"], [new.id, "t1"])
        self.assertEqual(seen["pending"], 1)
        self.assertEqual(seen["payload"]["establishmentId"], "2")
        self.assertEqual(seen["payload"]["user"], "fin@rede.com")
        self.assertEqual(seen["user"], "fin@rede.com")
        self.gateway.post_action.assert_called_once()
        self.assertEqual(self.gateway.post_action.call_args[0][0], Action.ADD_TRANSACTION)
        # Depois do refetch o cache é exatamente o do servidor
        self.assertEqual([t.id for t in self.client.store.transactions], [new.id, "t1"])
        self.assertEqual(self.client.pending_count, 0)
        self.assertEqual(self.gateway.fetch_snapshot.call_count, 2)

    def test_reconciled_copy_matches_submitted(self):
        self.login()
        self.gateway.fetch_snapshot.return_value = make_payload([])
        self.client.trigger_sync()
        new = Transaction.create("2", TransactionType.SAIDA, 40.5, "Gás", date="2025-07-07", observations="Botijão")
        posted = []

        def echo_post(action, payload, user):
            posted.append(payload)
            self.gateway.fetch_snapshot.return_value = make_payload(posted)
            return True

        self.gateway.post_action.side_effect = echo_post
        self.assertTrue(self.client.add_transaction(new))

        got = self.client.store.find_transaction(new.id)
        self.assertTrue(got.is_synced)
        submitted = dataclasses.replace(new, user="fin@rede.com")
        self.assertEqual(dataclasses.replace(got, is_synced=False), submitted)

    def test_failed_add_is_resent_on_next_sync(self):
        self.login()
        self.gateway.post_action.return_value = False
        new = Transaction.create("1", TransactionType.ENTRADA, 10, "Gorjeta")
        with self.assertLogs("fluxo.core.sync", level="WARNING"):
            self.client.add_transaction(new)

        self.gateway.post_action.reset_mock()
        self.gateway.post_action.return_value = True
        self.gateway.fetch_snapshot.return_value = make_payload([tx_dict(new.id), tx_dict("t1")])
        self.assertTrue(self.client.trigger_sync())

        self.gateway.post_action.assert_called_once()
        action, payload, user = self.gateway.post_action.call_args[0]
        self.assertEqual((action, payload["id"], user), (Action.ADD_TRANSACTION, new.id, "fin@rede.com"))
        self.assertEqual(self.client.pending_count, 0)

    def test_still_refused_add_survives_snapshot(self):
        self.login()
        self.gateway.post_action.return_value = False
        new = Transaction.create("1", TransactionType.ENTRADA, 10, "Gorjeta")
        with self.assertLogs("fluxo.core.sync", level="WARNING"):
            self.client.add_transaction(new)
            self.assertTrue(self.client.trigger_sync())

        self.assertEqual([t.id for t in self.client.store.transactions], [new.id, "t1"])
        self.assertEqual(self.client.pending_count, 1)
        self.assertEqual(self.gateway.post_action.call_count, 2)

    def test_posted_add_is_not_sent_twice(self):
        self.login()
        self.gateway.fetch_snapshot.side_effect = [TransportFailure("offline"), make_payload([tx_dict("t1")])]
        new = Transaction.create("1", TransactionType.ENTRADA, 10, "Gorjeta")

        with self.assertLogs("fluxo.core.sync", level="ERROR"):
            self.client.add_transaction(new)
        self.client.trigger_sync()

        self.gateway.post_action.assert_called_once()

    def test_failed_post_keeps_local_version(self):
        self.login()
        self.gateway.post_action.return_value = False
        new = Transaction.create("1", TransactionType.ENTRADA, 10, "Gorjeta")

        with self.assertLogs("fluxo.core.sync", level="WARNING"):
            self.assertTrue(self.client.add_transaction(new))

        self.assertEqual(self.client.store.transactions[0].id, new.id)
        self.assertEqual(self.client.pending_count, 1)
        # Só a busca do login
        self.assertEqual(self.gateway.fetch_snapshot.call_count, 1)

    def test_guest_cannot_mutate(self):
        self.login("guest@rede.com")
        before = self.client.store.state

        self.assertFalse(self.client.add_transaction(Transaction.create("1", TransactionType.ENTRADA, 1, "x")))
        self.assertFalse(self.client.update_note("recado"))
        self.assertFalse(self.client.update_settings(AppSettings(show_ai=False)))
        self.assertFalse(self.client.transfer("1", "2", 10, "troco"))

        self.assertIs(self.client.store.state, before)
        self.gateway.post_action.assert_not_called()

    def test_financeiro_cannot_manage_users_or_establishments(self):
        self.login()
        self.assertFalse(self.client.add_user(AuthorizedUser("novo@rede.com", Role.ADMIN)))
        self.assertFalse(self.client.delete_user("guest@rede.com"))
        self.assertFalse(self.client.add_establishment(Establishment.create("Pousada")))
        self.gateway.post_action.assert_not_called()

    def test_admin_user_management(self):
        self.login("admin@rede.com")
        self.gateway.post_action.return_value = False

        self.assertTrue(self.client.add_user(AuthorizedUser("novo@rede.com", Role.FINANCEIRO)))
        self.assertTrue(self.client.delete_user("guest@rede.com"))

        emails = [u.email for u in self.client.store.state.authorized_users]
        self.assertIn("novo@rede.com", emails)
        self.assertNotIn("guest@rede.com", emails)
        actions = [c[0][0] for c in self.gateway.post_action.call_args_list]
        self.assertEqual(actions, [Action.ADD_USER, Action.DELETE_USER])
        self.assertEqual(self.gateway.post_action.call_args_list[1][0][1], {"email": "guest@rede.com"})

    def test_edit_unknown_transaction(self):
        self.login()
        ghost = Transaction.create("1", TransactionType.ENTRADA, 1, "fantasma")
        self.assertFalse(self.client.edit_transaction(ghost))
        self.gateway.post_action.assert_not_called()

    def test_edit_transaction_payload(self):
        self.login()
        self.gateway.post_action.return_value = False
        original = self.client.store.find_transaction("t1")
        edited = dataclasses.replace(original, amount=150.0)

        self.assertTrue(self.client.edit_transaction(edited))

        payload = self.gateway.post_action.call_args[0][1]
        self.assertEqual(payload["amount"], 150.0)
        self.assertTrue(payload["isEdited"])
        self.assertTrue(self.client.store.find_transaction("t1").is_edited)

    def test_note_payload(self):
        self.login()
        self.client.update_note("Fechar às 22h", scope="1")
        self.gateway.post_action.assert_called_once_with(
            Action.UPDATE_NOTE, {"scope": "1", "text": "Fechar às 22h"}, "fin@rede.com"
        )

    def test_ready_descriptions(self):
        self.login()
        self.gateway.post_action.return_value = False
        self.assertTrue(self.client.add_ready_description(" Gás "))
        self.assertFalse(self.client.add_ready_description("Gás"))
        self.assertFalse(self.client.add_ready_description("   "))
        self.assertEqual(self.client.store.settings.ready_descriptions, ("Gás",))

        self.assertTrue(self.client.remove_ready_description("Gás"))
        self.assertFalse(self.client.remove_ready_description("Gás"))
        self.assertEqual(self.client.store.settings.ready_descriptions, ())

    def test_transfer_creates_two_submissions(self):
        self.login()
        self.gateway.post_action.return_value = False
        self.assertTrue(self.client.transfer("1", "2", 300, "Troco"))

        self.assertEqual(self.gateway.post_action.call_count, 2)
        self.assertEqual(self.client.pending_count, 2)
        self.assertEqual(self.client.balance_for(["1"]), 100 - 300)
        self.assertEqual(self.client.balance_for(["2"]), 300)

    def test_transfer_reports_missing_second_leg(self):
        self.login()
        demoted = [{"email": "fin@rede.com", "role": "Convidado"}]
        self.gateway.fetch_snapshot.return_value = make_payload(users=demoted)

        with self.assertLogs("fluxo.core.sync", level="WARNING"):
            self.assertFalse(self.client.transfer("1", "2", 300, "Troco"))

        self.assertEqual(self.gateway.post_action.call_count, 1)
        self.assertEqual(self.client.role, Role.CONVIDADO)

    def test_transfer_unknown_establishment(self):
        self.login()
        with self.assertRaises(InvalidTransfer):
            self.client.transfer("1", "99", 10, "Troco")


class TestLocalMode(unittest.TestCase):
    def test_no_endpoint_grants_admin(self):
        client = SyncOrchestrator(None)
        self.assertTrue(client.is_local)
        self.assertTrue(client.trigger_sync())
        self.assertEqual(client.role, Role.ADMIN)

        self.assertTrue(client.add_establishment(Establishment("1", "Hotel")))
        self.assertTrue(client.add_transaction(Transaction.create("1", TransactionType.ENTRADA, 50, "Diária")))
        self.assertEqual(client.balance_for(["1"]), 50)
        self.assertEqual(client.store.transactions[0].user, "unknown")

    def test_daily_series(self):
        client = SyncOrchestrator(None)
        client.trigger_sync()
        client.add_transaction(Transaction.create("1", TransactionType.SAIDA, 20, "Gelo", date="2025-07-07"))
        series = client.daily_series(datetime.date(2025, 7, 7))
        self.assertEqual(series[-1].saida, 20)


class TestGroups(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.session = SessionStore(LocalStorage(Path(self.tmp.name) / "sessao.json"))
        self.gateway = MagicMock(spec=SheetGateway)
        self.gateway.fetch_snapshot.return_value = make_payload(
            [tx_dict("t1", "1", "Entrada", 100), tx_dict("t2", "2", "Saída", 30)],
            settings={"leftGroupIds": ["1"], "rightGroupIds": ["2"]},
        )

    def tearDown(self):
        self.tmp.cleanup()

    def test_settings_groups(self):
        client = SyncOrchestrator(self.gateway, session=self.session)
        client.trigger_sync()
        self.assertEqual(client.group_balances(), {"left": 100, "right": -30})

    def test_session_selection_overrides_settings(self):
        client = SyncOrchestrator(self.gateway, session=self.session)
        client.trigger_sync()
        client.select_group("left", ["1", "2"])
        self.assertEqual(client.group_balances(), {"left": 70, "right": -30})

    def test_user_restored_from_session(self):
        self.session.save_user(UserProfile(email="admin@rede.com"))
        client = SyncOrchestrator(self.gateway, session=self.session)
        self.assertEqual(client.user.email, "admin@rede.com")
        client.trigger_sync()
        self.assertEqual(client.role, Role.ADMIN)

    def test_pending_survives_restart(self):
        self.session.save_user(UserProfile(email="admin@rede.com"))
        self.gateway.post_action.return_value = False
        client = SyncOrchestrator(self.gateway, session=self.session)
        client.trigger_sync()
        new = Transaction.create("1", TransactionType.ENTRADA, 25, "Gorjeta")
        with self.assertLogs("fluxo.core.sync", level="WARNING"):
            client.add_transaction(new)

        restarted = SyncOrchestrator(self.gateway, session=self.session)
        self.assertEqual([t.id for t in restarted.store.transactions], [new.id])
        self.assertEqual(restarted.pending_count, 1)

        self.gateway.post_action.return_value = True
        restarted.trigger_sync()
        action, payload, user = self.gateway.post_action.call_args[0]
        self.assertEqual((action, payload["id"], user), (Action.ADD_TRANSACTION, new.id, "admin@rede.com"))
        self.assertEqual(self.session.load_pending(), [])

    def test_select_group_without_session(self):
        with self.assertRaises(RuntimeError):
            SyncOrchestrator(None).select_group("left", ["1"])


if __name__ == "__main__":
    unittest.main()
