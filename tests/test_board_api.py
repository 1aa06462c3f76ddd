# -*-  coding: utf-8 -*-
"""
Set of tests for the stateless HTTP API.
"""
from unittest import TestCase, main
from unittest.mock import patch

from fastapi.testclient import TestClient

from board_api import RATE_LIMIT, app, limiter

FULL_NO_MOVES = [
    [2, 4, 2, 4],
    [4, 2, 4, 2],
    [2, 4, 2, 4],
    [4, 2, 4, 2],
]


class TestBoardApi(TestCase):
    """Tests for the game endpoints."""
    def setUp(self):
        limiter.reset()
        self.client = TestClient(app)

    def test_new_game(self):
        """Test if a new game has two tiles and no score."""
        response = self.client.post("/game/new")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["score"], 0)
        self.assertFalse(data["game_over"])
        tiles = [value for row in data["board"] for value in row if value]
        self.assertEqual(len(tiles), 2)

    def test_effective_move(self):
        """Test if a merging move updates board and score."""
        board = [[2, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        response = self.client.post("/game/move", json={"board": board, "score": 8, "direction": "left"})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["changed"])
        self.assertEqual(data["score"], 12)
        self.assertEqual(data["score_gained"], 4)
        self.assertEqual(data["board"][0][0], 4)
        self.assertIn(sum(map(sum, data["board"])), (6, 8))
        self.assertIsNone(data["message"])

    def test_ineffective_move(self):
        """Test if a move that changes nothing is reported as such."""
        board = [[2, 4, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        response = self.client.post("/game/move", json={"board": board, "score": 8, "direction": "left"})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertFalse(data["changed"])
        self.assertEqual(data["board"], board)
        self.assertEqual(data["score"], 8)
        self.assertEqual(data["score_gained"], 0)
        self.assertIsNotNone(data["message"])

    def test_game_over_board(self):
        """Test if a stuck board is reported as game over."""
        response = self.client.post("/game/move", json={"board": FULL_NO_MOVES, "score": 0, "direction": "up"})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["game_over"])
        self.assertFalse(data["changed"])
        self.assertEqual(data["message"], "Game Over. No more valid moves.")

    def test_malformed_board_rejected(self):
        """Test if malformed boards are rejected with 422."""
        for board in ([[2, 2], [0, 0]], [[3, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]):
            response = self.client.post("/game/move", json={"board": board, "score": 0, "direction": "left"})
            self.assertEqual(response.status_code, 422)

    def test_unknown_direction_rejected(self):
        """Test if an unknown direction is rejected with 422."""
        board = [[2, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        response = self.client.post("/game/move", json={"board": board, "score": 0, "direction": "sideways"})
        self.assertEqual(response.status_code, 422)

    def test_rate_limit(self):
        """Test if requests over the limit get 429."""
        allowed = int(RATE_LIMIT.split("/")[0])
        for _ in range(allowed):
            self.assertEqual(self.client.post("/game/new").status_code, 200)
        self.assertEqual(self.client.post("/game/new").status_code, 429)

    def test_new_game_unexpected_error(self):
        """Test if a failure while creating a game is logged and mapped to 500."""
        with patch("board_engine.new_game", side_effect=RuntimeError("boom")), \
                self.assertLogs("board_api", "ERROR") as logs:
            response = self.client.post("/game/new")
        self.assertEqual(response.status_code, 500)
        self.assertTrue(response.json()["detail"].startswith("An unexpected error occurred during game creation"))
        self.assertIn("boom", response.json()["detail"])
        self.assertIn("Unexpected error in /game/new", logs.output[0])

    def test_move_unexpected_error(self):
        """Test if a failure while moving is logged and mapped to 500."""
        board = [[2, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        with patch("board_engine.take_turn", side_effect=RuntimeError("boom")), \
                self.assertLogs("board_api", "ERROR") as logs:
            response = self.client.post("/game/move", json={"board": board, "score": 0, "direction": "left"})
        self.assertEqual(response.status_code, 500)
        self.assertTrue(response.json()["detail"].startswith("An unexpected server error occurred while processing the move"))
        self.assertIn("Unexpected error in /game/move", logs.output[0])
        self.assertEqual(logs.records[0].exc_info[0], RuntimeError)


if __name__ == '__main__':
    main()
