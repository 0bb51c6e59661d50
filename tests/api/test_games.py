import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine

from ladderboard.hardware import HardwareEvent
from ladderboard.models import Player


async def set_positions(db_url: str, game_id: str, player1: int, player2: int) -> None:
    """Place both pieces directly in the database."""
    engine = create_async_engine(db_url)
    try:
        async with engine.begin() as conn:
            rows = await conn.execute(
                select(Player.id, Player.slot).where(Player.game_id == uuid.UUID(game_id))
            )
            for player_id, slot in rows.all():
                position = player1 if slot.value == "player1" else player2
                await conn.execute(
                    Player.__table__.update().where(Player.id == player_id).values(position=position)
                )
    finally:
        await engine.dispose()


async def move(client, game_id: str, player: int, dice: int):
    return await client.post(
        f"/api/update-position/{game_id}",
        json={"player": player, "dice": dice},
    )


@pytest.mark.asyncio
async def test_mode_select_requires_login(client):
    resp = await client.post("/api/mode-select", json={"mode": "dual"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_mode_select_reuses_open_game(client, auth_headers):
    first = await client.post("/api/mode-select", json={"mode": "single"}, headers=auth_headers)
    assert first.status_code == 200
    second = await client.post("/api/mode-select", json={"mode": "dual"}, headers=auth_headers)
    assert second.status_code == 200
    assert first.json()["game_id"] == second.json()["game_id"]

    active = await client.get("/api/active-game", headers=auth_headers)
    assert active.status_code == 200
    assert active.json()["mode"] == "dual"
    assert active.json()["game_id"] == first.json()["game_id"]


@pytest.mark.asyncio
async def test_player_details_without_game(client, auth_headers):
    resp = await client.post(
        "/api/player-details",
        json={"player1": {"name": "Alice"}},
        headers=auth_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No active game found"


@pytest.mark.asyncio
async def test_dual_mode_requires_player2(client, auth_headers):
    await client.post("/api/mode-select", json={"mode": "dual"}, headers=auth_headers)
    resp = await client.post(
        "/api/player-details",
        json={"player1": {"name": "Alice"}},
        headers=auth_headers,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_player_details_notifies_board(client, auth_headers):
    resp = await client.post("/api/mode-select", json={"mode": "single"}, headers=auth_headers)
    game_id = resp.json()["game_id"]

    with patch("ladderboard.api.games.hardware_notifier.notify") as mock_notify:
        resp = await client.post(
            "/api/player-details",
            json={"player1": {"name": "Alice", "color": "#EF4444"}},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        mock_notify.assert_called_once()
        event, payload = mock_notify.call_args.args
        assert event == HardwareEvent.GAME_SETUP
        assert payload["gameId"] == game_id
        assert payload["mode"] == "single"
        assert payload["players"] == [
            {"name": "Alice", "color": "#EF4444"},
            {"name": "ROBUST", "color": "#f79a04ff"},
        ]

    state = (await client.get(f"/api/get-game-state/{game_id}")).json()
    assert state["player1"] == {"name": "Alice", "position": 1}
    assert state["player2"] == {"name": "ROBUST", "position": 1}
    assert state["current_turn"] == "player1"
    assert state["winner"] is None
    assert state["is_game_over"] is False


@pytest.mark.asyncio
async def test_board_failure_does_not_fail_setup(client, auth_headers):
    await client.post("/api/mode-select", json={"mode": "single"}, headers=auth_headers)
    with patch(
        "ladderboard.api.games.hardware_notifier.notify", return_value=False
    ):
        resp = await client.post(
            "/api/player-details",
            json={"player1": {"name": "Alice"}},
            headers=auth_headers,
        )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_ladder_and_turn_alternation(client, dual_game):
    resp = await move(client, dual_game, player=1, dice=1)
    assert resp.status_code == 200
    body = resp.json()
    assert body["position"] == 36
    assert body["current_turn"] == "player2"
    assert body["winner"] is None

    resp = await move(client, dual_game, player=2, dice=3)
    assert resp.json()["position"] == 14  # ladder 4 -> 14
    assert resp.json()["current_turn"] == "player1"


@pytest.mark.asyncio
async def test_wrong_turn_is_rejected(client, dual_game):
    resp = await move(client, dual_game, player=2, dice=3)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "It's not player2's turn."

    state = (await client.get(f"/api/get-game-state/{dual_game}")).json()
    assert state["player2"]["position"] == 1
    assert state["current_turn"] == "player1"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"player": 1, "dice": 0}, {"player": 1, "dice": 7}, {"player": 3, "dice": 2}])
async def test_invalid_move_payload(client, dual_game, payload):
    resp = await client.post(f"/api/update-position/{dual_game}", json=payload)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_unknown_game(client):
    missing = uuid.uuid4()
    assert (await client.get(f"/api/get-game-state/{missing}")).status_code == 404
    assert (await move(client, str(missing), player=1, dice=2)).status_code == 404
    assert (await client.post(f"/api/reset-game/{missing}")).status_code == 404
    assert (await client.post(f"/api/hardware-reset/{missing}")).status_code == 404


@pytest.mark.asyncio
async def test_win_then_reject_then_reset(client, auth_headers, dual_game, test_db_url):
    await set_positions(test_db_url, dual_game, player1=95, player2=40)

    resp = await move(client, dual_game, player=1, dice=5)
    assert resp.status_code == 200
    assert resp.json()["position"] == 100
    assert resp.json()["winner"] == "Alice"
    assert resp.json()["current_turn"] == "player1"

    state = (await client.get(f"/api/get-game-state/{dual_game}")).json()
    assert state["is_game_over"] is True
    assert state["winner"] == "Alice"

    # Finished games accept no moves from anyone
    for player in (1, 2):
        rejected = await move(client, dual_game, player=player, dice=1)
        assert rejected.status_code == 400
        assert rejected.json()["detail"] == "Game is already over"

    # The won game no longer counts as the user's open game
    assert (await client.get("/api/active-game", headers=auth_headers)).status_code == 404

    resp = await client.post(f"/api/reset-game/{dual_game}")
    assert resp.status_code == 200
    state = resp.json()["game_state"]
    assert state["player1"] == {"name": "Alice", "position": 1}
    assert state["player2"] == {"name": "Bob", "position": 1}
    assert state["winner"] is None
    assert state["is_game_over"] is False
    assert state["current_turn"] == "player1"
    assert state["reset_count"] == 1
    assert state["last_reset_source"] == "web"

    active = await client.get("/api/active-game", headers=auth_headers)
    assert active.json()["game_id"] == dual_game


@pytest.mark.asyncio
async def test_new_game_after_win(client, auth_headers, dual_game, test_db_url):
    await set_positions(test_db_url, dual_game, player1=94, player2=1)
    await move(client, dual_game, player=1, dice=6)

    resp = await client.post("/api/mode-select", json={"mode": "dual"}, headers=auth_headers)
    new_game = resp.json()["game_id"]
    assert new_game != dual_game

    # Resetting the old game leaves the new one as the open game
    resp = await client.post(f"/api/reset-game/{dual_game}")
    assert resp.status_code == 200
    active = await client.get("/api/active-game", headers=auth_headers)
    assert active.json()["game_id"] == new_game


@pytest.mark.asyncio
async def test_hardware_reset(client, dual_game):
    await move(client, dual_game, player=1, dice=5)
    await move(client, dual_game, player=2, dice=2)

    resp = await client.post(f"/api/hardware-reset/{dual_game}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["reset_source"] == "hardware"
    assert body["game_state"]["player1"]["position"] == 1
    assert body["game_state"]["player2"]["position"] == 1
    assert body["game_state"]["last_reset_source"] == "hardware"
    assert body["game_state"]["reset_count"] == 1


@pytest.mark.asyncio
async def test_play_again_resets_and_notifies(client, dual_game):
    await move(client, dual_game, player=1, dice=5)

    with patch("ladderboard.api.games.hardware_notifier.notify") as mock_notify:
        resp = await client.post(f"/api/play-again/{dual_game}")
        assert resp.status_code == 200
        mock_notify.assert_called_once_with(HardwareEvent.PLAY_AGAIN, {"gameId": dual_game})

    assert resp.json()["game_state"]["player1"]["position"] == 1


@pytest.mark.asyncio
async def test_end_game_closes_and_notifies(client, auth_headers, dual_game):
    with patch("ladderboard.api.games.hardware_notifier.notify") as mock_notify:
        resp = await client.post(f"/api/end-game/{dual_game}")
        assert resp.status_code == 200
        mock_notify.assert_called_once_with(HardwareEvent.END_GAME, {"gameId": dual_game})

    rejected = await move(client, dual_game, player=1, dice=2)
    assert rejected.status_code == 400
    assert rejected.json()["detail"] == "Game has been ended"

    assert (await client.get("/api/active-game", headers=auth_headers)).status_code == 404
    resp = await client.post("/api/mode-select", json={"mode": "single"}, headers=auth_headers)
    assert resp.json()["game_id"] != dual_game


@pytest.mark.asyncio
async def test_computer_move(client, auth_headers):
    await client.post("/api/mode-select", json={"mode": "single"}, headers=auth_headers)
    resp = await client.post(
        "/api/player-details",
        json={"player1": {"name": "Alice"}},
        headers=auth_headers,
    )
    game_id = resp.json()["game_id"]

    # Not the computer's turn yet
    assert (await client.post(f"/api/computer-move/{game_id}")).status_code == 400

    await move(client, game_id, player=1, dice=3)
    with patch("ladderboard.api.games.roll_die", return_value=4):
        resp = await client.post(f"/api/computer-move/{game_id}")
    assert resp.status_code == 200
    assert resp.json()["dice"] == 4
    assert resp.json()["position"] == 5
    assert resp.json()["current_turn"] == "player1"


@pytest.mark.asyncio
async def test_computer_move_needs_single_mode(client, dual_game):
    resp = await client.post(f"/api/computer-move/{dual_game}")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_games_are_per_user(client, dual_game, auth_headers, signup):
    other = await signup(client)
    resp = await client.post("/api/mode-select", json={"mode": "single"}, headers=other)
    assert resp.json()["game_id"] != dual_game

    mine = await client.get("/api/active-game", headers=auth_headers)
    assert mine.json()["game_id"] == dual_game


@pytest.mark.asyncio
async def test_board_layout(client):
    resp = await client.get("/api/board")
    assert resp.status_code == 200
    body = resp.json()
    assert body["finish"] == 100
    assert body["snakes"]["16"] == 6
    assert body["ladders"]["2"] == 36
