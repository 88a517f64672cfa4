#!/usr/bin/env python3
"""Tests for the hand store, idempotent persistence, the batch driver and the maintenance CLI."""

import copy
import itertools
import json
import threading
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import pytest

import main
import response_cli
from parser import HandParser, parse_hand
from response.orchestrator import BatchResult, ResponseOrchestrator, select_villain
from response.pipeline import ResponsePipeline
from response.persistence import persist_response_model
from response.storage import (
    HandStore,
    PersistenceMissTarget,
    PersistenceTransport,
    canonical_json,
    resolve_store_path,
)


def hand_doc(hand_id, username="alice", heroes=("a3",)):
    return {
        "id": hand_id,
        "username": username,
        "players": [{"id": "h", "position": "CO"}, {"id": "v", "position": "BTN"}],
        "playerStacks": {"h": 62, "v": 62},
        "board": ["Ks", "7d", "2c"],
        "bettingActions": [
            {"actionId": "a1", "playerId": "h", "action": "raise", "amount": 2, "street": "preflop"},
            {"actionId": "a2", "playerId": "v", "action": "call", "amount": 2, "street": "preflop"},
            {"actionId": "a3", "playerId": "h", "action": "bet", "amount": 1, "street": "flop"},
        ],
        "heroActions": [
            {"actionId": action_id, "opponentId": "v", "villainRange": {"AA": 1.0, "KQs": 1.0, "76s": 0.5}}
            for action_id in heroes
        ],
    }


def seeded_store(tmp):
    store = HandStore(db_path=Path(tmp) / "hands.db")
    store.save_hand(hand_doc("h1", heroes=("a1", "a3")))
    store.save_hand(hand_doc("h2", username="bob"))
    return store


def snapshot(store):
    return {hand_id: canonical_json(store.get_hand(hand_id)) for hand_id in ("h1", "h2")}


def test_store_round_trip_and_listing():
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        assert store.get_hand("h1")["username"] == "alice"
        assert store.get_hand("missing") is None
        assert store.count_hands() == 2
        assert store.count_hands("bob") == 1
        assert store.usernames() == ["alice", "bob"]

        listed = store.list_hands()
        assert [row["id"] for row in listed] == ["h2", "h1"]
        assert listed[1]["hero_actions"] == 2
        assert listed[1]["modelled"] == 0

        store.save_hand(hand_doc("h1", username="carol"))
        assert store.count_hands() == 2
        assert [doc["id"] for doc in store.iter_hands(page_size=1)] == ["h1", "h2"]

        assert store.delete_hand("h2")
        assert not store.delete_hand("h2")
        assert store.clear() == {"hands_deleted": 1}


def test_store_path_accepts_sqlite_uri():
    assert resolve_store_path("sqlite:///data/hands.db") == Path("data/hands.db")
    assert resolve_store_path("/tmp/x.db") == Path("/tmp/x.db")
    with pytest.raises(ValueError):
        resolve_store_path("sqlite:///")


def test_save_requires_an_id():
    with TemporaryDirectory() as tmp:
        store = HandStore(db_path=Path(tmp) / "hands.db")
        with pytest.raises(ValueError):
            store.save_hand({"username": "x"})


def test_persist_is_idempotent_and_checks_target():
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        model = {
            "frequencies": {"fold": 0.5, "call": 0.4, "raise": 0.1},
            "gtoReference": {"frequencies": {"fold": 0.8, "call": 0.1, "raise": 0.1}},
            "ranges": {"fold": {}, "call": {}, "raise": {}},
        }
        assert persist_response_model(store, "h2", 0, model)
        assert not persist_response_model(store, "h2", 0, copy.deepcopy(model))

        hero = store.get_hand("h2")["heroActions"][0]
        assert hero["responseFrequencies"] == model["frequencies"]
        assert hero["gtoFrequencies"] == model["gtoReference"]["frequencies"]
        assert hero["responseRanges"] == model["ranges"]
        assert hero["villainRange"]["AA"] == 1.0

        with pytest.raises(PersistenceMissTarget):
            persist_response_model(store, "nope", 0, model)
        with pytest.raises(PersistenceMissTarget):
            persist_response_model(store, "h2", 5, model)


def test_batch_run_updates_each_hero_action_once():
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        orchestrator = ResponseOrchestrator(store=store)

        first = orchestrator.run()
        assert first.hands_seen == 2
        assert first.hands_updated == 2
        assert first.actions_updated == 3
        assert first.done_line() == "Done. Updated 3 hero actions across 2 hands."
        heroes = store.get_hand("h1")["heroActions"]
        assert all("responseModel" in hero for hero in heroes)
        assert sum(heroes[1]["responseFrequencies"].values()) == pytest.approx(1.0)

        before = snapshot(store)
        second = orchestrator.run()
        assert second.actions_updated == 0
        assert second.hands_updated == 0
        assert [o.skipped for o in second.outcomes] == [2, 1]
        assert snapshot(store) == before


def test_batch_run_filters_by_username():
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        result = ResponseOrchestrator(store=store).run(username="bob")
        assert result.hands_seen == 1
        assert result.outcomes[0].hand_id == "h2"
        assert "responseModel" not in store.get_hand("h1")["heroActions"][0]


def test_cancel_before_start_processes_nothing():
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        cancel = threading.Event()
        cancel.set()
        result = ResponseOrchestrator(store=store, cancel_event=cancel).run()
        assert result.cancelled
        assert result.hands_seen == 0
        assert "responseModel" not in store.get_hand("h1")["heroActions"][0]


def test_cancel_mid_run_finishes_current_hand():
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        cancel = threading.Event()
        orchestrator = ResponseOrchestrator(store=store, cancel_event=cancel)
        result = orchestrator.run(progress=lambda outcome: cancel.set())
        assert result.cancelled
        assert result.hands_seen == 1
        assert result.actions_updated == 2
        assert "responseModel" not in store.get_hand("h2")["heroActions"][0]


def test_hand_budget_skips_remaining_hero_actions():
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        ticks = itertools.chain([0.0, 0.0], itertools.repeat(100.0))
        orchestrator = ResponseOrchestrator(store=store, hand_budget_seconds=30, clock=lambda: next(ticks))
        outcome = orchestrator.process_hand(store.get_hand("h1"))
        assert outcome.over_budget
        assert outcome.updated == 1
        assert outcome.skipped == 1
        assert "budget exceeded" in outcome.summary_line()
        heroes = store.get_hand("h1")["heroActions"]
        assert "responseModel" in heroes[0]
        assert "responseModel" not in heroes[1]


def test_bad_documents_are_reported_not_raised():
    with TemporaryDirectory() as tmp:
        store = HandStore(db_path=Path(tmp) / "hands.db")
        store.save_hand({"id": "empty", "heroActions": [{"actionId": "a1"}]})
        store.save_hand(hand_doc("ghost", heroes=("zz",)))
        result = ResponseOrchestrator(store=store).run()
        by_id = {o.hand_id: o for o in result.outcomes}
        assert by_id["empty"].invalid
        assert result.hands_failed == 1
        assert by_id["ghost"].errors == 1
        assert result.actions_updated == 0


@pytest.mark.parametrize("error", [PersistenceTransport("disk I/O error"), PersistenceMissTarget("hand h1 vanished")])
def test_write_failure_is_counted_and_next_hand_still_updates(error):
    original = HandStore.set_hero_action_fields

    def failing_for_h1(store, hand_id, slot, fields):
        if hand_id == "h1":
            raise error
        return original(store, hand_id, slot, fields)

    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        with patch.object(HandStore, "set_hero_action_fields", autospec=True, side_effect=failing_for_h1):
            result = ResponseOrchestrator(store=store).run()
        by_id = {o.hand_id: o for o in result.outcomes}
        assert by_id["h1"].errors == 2
        assert by_id["h1"].updated == 0
        assert by_id["h2"].updated == 1
        assert result.actions_updated == 1
        assert "responseModel" not in store.get_hand("h1")["heroActions"][0]
        assert "responseModel" in store.get_hand("h2")["heroActions"][0]


def _with_null_weight(doc):
    doc["heroActions"][0]["villainRange"] = {"AA": None}


def _with_bad_board_card(doc):
    doc["board"] = ["Ks", "7d", "Xx"]


def _with_stack_list(doc):
    doc["playerStacks"] = [62, 62]


@pytest.mark.parametrize("damage", [_with_null_weight, _with_bad_board_card, _with_stack_list])
def test_malformed_hand_does_not_stop_the_batch(damage):
    with TemporaryDirectory() as tmp:
        store = HandStore(db_path=Path(tmp) / "hands.db")
        bad = hand_doc("bad")
        damage(bad)
        store.save_hand(bad)
        store.save_hand(hand_doc("good"))

        result = ResponseOrchestrator(store=store).run()
        assert result.hands_seen == 2
        assert [o.hand_id for o in result.outcomes] == ["bad", "good"]
        assert result.outcomes[1].updated == 1
        assert "responseModel" in store.get_hand("good")["heroActions"][0]
        freqs = store.get_hand("bad")["heroActions"][0]["responseFrequencies"]
        assert sum(freqs.values()) == pytest.approx(1.0)


def test_unexpected_errors_are_logged_and_skipped(caplog):
    parse_original = HandParser.parse_document
    run_original = ResponsePipeline.run

    def parse(parser, doc, index=0):
        if doc.get("id") == "unparseable":
            raise RuntimeError("parser blew up")
        return parse_original(parser, doc, index)

    def run(pipeline, hand, action_index, villain_id=None, **seed):
        if hand.hand_id == "broken":
            raise RuntimeError("stage blew up")
        return run_original(pipeline, hand, action_index, villain_id, **seed)

    with TemporaryDirectory() as tmp:
        store = HandStore(db_path=Path(tmp) / "hands.db")
        for hand_id in ("unparseable", "broken", "good"):
            store.save_hand(hand_doc(hand_id))

        with patch.object(HandParser, "parse_document", autospec=True, side_effect=parse), \
                patch.object(ResponsePipeline, "run", autospec=True, side_effect=run):
            result = ResponseOrchestrator(store=store).run()

        by_id = {o.hand_id: o for o in result.outcomes}
        assert by_id["unparseable"].invalid
        assert by_id["broken"].errors == 1
        assert by_id["good"].updated == 1
        assert result.hands_failed == 1
        assert "stage blew up" in caplog.text


def test_compute_leaves_document_untouched():
    doc = hand_doc("h1")
    before = copy.deepcopy(doc)
    model = ResponseOrchestrator().compute(doc, 0)
    assert doc == before
    assert model["villainId"] == "v"
    assert set(model["frequencies"]) == {"fold", "call", "raise"}


def test_run_without_store_is_a_transport_error():
    with pytest.raises(PersistenceTransport):
        ResponseOrchestrator().run()


def test_select_villain_order():
    doc = hand_doc("h1")
    doc["heroActions"] = []
    hand = parse_hand(doc)
    assert select_villain(hand, 2, "v") == "v"
    assert select_villain(hand, 0) == "v"
    assert select_villain(hand, 2) == "v"
    assert select_villain(hand, 2, hint="h") == "v"


def test_batch_main_exit_codes(capsys):
    with TemporaryDirectory() as tmp:
        store = seeded_store(tmp)
        db = str(store.db_path)

        assert main.main(["--db", db]) == main.EXIT_OK
        out = capsys.readouterr().out
        assert "h1: updated 2, skipped 0" in out
        assert "Done. Updated 3 hero actions across 2 hands." in out

        with patch("main.ResponseOrchestrator.run", return_value=BatchResult(cancelled=True)):
            assert main.main(["--db", db]) == main.EXIT_CANCELLED

        with patch("main.ResponseOrchestrator.run", side_effect=PersistenceTransport("cursor lost")):
            assert main.main(["--db", db]) == main.EXIT_TRANSPORT
        assert "cursor lost" in capsys.readouterr().err


def test_batch_main_fails_when_store_cannot_open():
    with TemporaryDirectory() as tmp:
        blocker = Path(tmp) / "blocker"
        blocker.write_text("not a directory")
        assert main.main(["--db", str(blocker / "hands.db")]) == main.EXIT_TRANSPORT


def test_response_cli_commands(capsys):
    with TemporaryDirectory() as tmp:
        db = str(Path(tmp) / "hands.db")
        source = Path(tmp) / "hands.json"
        source.write_text(json.dumps({"hands": [hand_doc("h1"), {"username": "no-id"}]}))

        assert response_cli.main(["--db", db, "import", str(source)]) == 0
        imported = json.loads(capsys.readouterr().out)
        assert imported["imported"] == ["h1"]
        assert len(imported["rejected"]) == 1

        assert response_cli.main(["--db", db, "usernames"]) == 0
        assert capsys.readouterr().out.split() == ["alice"]

        assert response_cli.main(["--db", db, "compute", "h1", "0", "--no-persist"]) == 0
        computed = json.loads(capsys.readouterr().out)
        assert computed["persisted"] is False
        assert sum(computed["model"]["frequencies"].values()) == pytest.approx(1.0)

        assert response_cli.main(["--db", db, "compute", "h1", "0"]) == 0
        assert json.loads(capsys.readouterr().out)["persisted"] is True

        assert response_cli.main(["--db", db, "list"]) == 0
        assert json.loads(capsys.readouterr().out)[0]["modelled"] == 1

        assert response_cli.main(["--db", db, "compute", "h1", "4"]) == 1
        assert response_cli.main(["--db", db, "show", "missing"]) == 1
        assert response_cli.main(["--db", db, "delete", "h1"]) == 0
        assert response_cli.main(["--db", db, "delete", "h1"]) == 1
