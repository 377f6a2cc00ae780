"""Tests for the FastAPI PerfectXO interface."""

from __future__ import annotations

import time

from fastapi.testclient import TestClient

from perfectxo import ui
from perfectxo.ai import choose_move
from perfectxo.game import Board
from perfectxo.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = (0.0, 0.0)


def _new_game(symbol: str | None = "X") -> dict:
    response = client.post("/api/game", json={"symbol": symbol})
    assert response.status_code == 200
    return response.json()


def test_create_game_and_first_move():
    payload = _new_game("X")
    assert payload["phase"] == "player_turn"
    assert payload["human"] == "X"
    assert payload["computer"] == "O"
    assert payload["moveLog"] == []
    assert payload["outcome"] == {"status": "in_progress", "winner": None}

    game_id = payload["id"]
    move_response = client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["ignored"] is False
    assert state["board"][1][1] == "X"
    assert state["moveLog"][0] == {"player": "X", "row": 1, "col": 1}
    assert state["phase"] == "computer_turn"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["phase"] == "player_turn"
    assert final_state["aiPending"] is False
    assert final_state["lastMove"]["player"] == "O"
    assert final_state["board"][0][0] == "O"


def test_occupied_cell_is_ignored():
    game_id = _new_game("X")["id"]
    client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1})

    duplicate = client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1})
    assert duplicate.status_code == 200
    state = duplicate.json()
    assert state["ignored"] is True
    assert len(state["moveLog"]) == 2


def test_out_of_range_move_rejected():
    game_id = _new_game("X")["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"row": 3, "col": 0})
    assert response.status_code == 422


def test_move_before_choosing_symbol_conflicts():
    payload = _new_game(None)
    assert payload["phase"] == "choosing_symbol"
    response = client.post(f"/api/game/{payload['id']}/move", json={"row": 0, "col": 0})
    assert response.status_code == 409
    assert response.json()["detail"]


def test_choose_symbol_once():
    game_id = _new_game(None)["id"]
    chosen = client.post(f"/api/game/{game_id}/symbol", json={"symbol": "X"})
    assert chosen.status_code == 200
    assert chosen.json()["phase"] == "player_turn"

    again = client.post(f"/api/game/{game_id}/symbol", json={"symbol": "O"})
    assert again.status_code == 409


def test_rejects_unknown_symbol():
    response = client.post("/api/game", json={"symbol": "Z"})
    assert response.status_code == 422


def test_computer_opens_when_human_picks_o():
    payload = _new_game("O")
    assert payload["computer"] == "X"
    assert payload["aiPending"] is True

    state = client.get(f"/api/game/{payload['id']}").json()
    assert state["phase"] == "player_turn"
    assert state["board"][0][0] == "X"
    assert state["moveLog"] == [{"player": "X", "row": 0, "col": 0}]


def test_finished_game_reports_winning_line_and_resets():
    game_id = _new_game("X")["id"]
    handle = ui.SESSIONS[game_id]
    handle.session.board = Board.from_rows(["XX ", "OO ", "   "])

    state = client.post(f"/api/game/{game_id}/move", json={"row": 0, "col": 2}).json()
    assert state["phase"] == "terminal"
    assert state["outcome"] == {"status": "win", "winner": "X"}
    assert state["winningLine"] == [[0, 0], [0, 1], [0, 2]]
    assert state["aiPending"] is False
    assert state["resetDelayMs"] == ui.RESET_DELAY_MS

    late = client.post(f"/api/game/{game_id}/move", json={"row": 2, "col": 2})
    assert late.status_code == 409

    reset = client.post(f"/api/game/{game_id}/reset")
    assert reset.status_code == 200
    fresh = reset.json()
    assert fresh["phase"] == "player_turn"
    assert fresh["board"] == [["", "", ""], ["", "", ""], ["", "", ""]]
    assert fresh["moveLog"] == []
    assert fresh["winningLine"] is None


def test_reset_before_choosing_symbol_conflicts():
    game_id = _new_game(None)["id"]
    assert client.post(f"/api/game/{game_id}/reset").status_code == 409


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert client.post("/api/game/missing/move", json={"row": 0, "col": 0}).status_code == 404


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "PerfectXO" in response.text


def test_reset_during_search_discards_stale_move(monkeypatch):
    game_id = _new_game("X")["id"]
    handle = ui.SESSIONS[game_id]
    searches = []

    def reset_mid_search(board, computer, human):
        searches.append(board.rows())
        if len(searches) == 1:
            # Another request resets and plays while the first search runs.
            with handle.lock:
                handle.session.reset()
                handle.session.play((2, 2))
            return (0, 0)
        return choose_move(board, computer, human)

    monkeypatch.setattr(ui, "choose_move", reset_mid_search)

    response = client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1})
    assert response.json()["aiPending"] is True

    state = client.get(f"/api/game/{game_id}").json()
    assert searches == [["   ", " X ", "   "], ["   ", "   ", "  X"]]
    assert state["board"][0][0] == ""
    assert state["board"][1][1] == "O"
    assert state["board"][2][2] == "X"
    assert [entry["player"] for entry in state["moveLog"]] == ["X", "O"]
    assert state["phase"] == "player_turn"
    assert state["aiPending"] is False
    assert handle.ai_pending is False


def test_idle_sessions_are_evicted():
    stale_id = _new_game("X")["id"]
    ui.SESSIONS[stale_id].touched_at = time.time() - ui.SESSION_TTL_SECONDS - 1

    fresh_id = _new_game("X")["id"]
    assert client.get(f"/api/game/{stale_id}").status_code == 404
    assert client.get(f"/api/game/{fresh_id}").status_code == 200


def test_busy_sessions_are_kept():
    busy_id = _new_game("X")["id"]
    handle = ui.SESSIONS[busy_id]
    handle.touched_at = time.time() - ui.SESSION_TTL_SECONDS - 1
    handle.ai_pending = True

    _new_game("X")
    assert busy_id in ui.SESSIONS
