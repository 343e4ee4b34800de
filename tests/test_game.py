"""Unit tests for the ImpossibleXO board, move rules and outcome detection."""

import pytest

from impossiblexo.game import (
    WINNING_LINES,
    Board,
    BoardFull,
    Cell,
    CellOccupied,
    CellValue,
    GameOver,
    GameState,
    InvalidMove,
    InvariantViolation,
    OutOfTurn,
    TicTacToeGame,
)

E, H, C = CellValue.EMPTY, CellValue.HUMAN, CellValue.CPU


def test_new_game_has_nine_empty_cells_in_row_major_order():
    game = TicTacToeGame()
    cells = game.cells()
    assert [(c.row, c.column) for c in cells] == [
        (r, col) for r in range(3) for col in range(3)
    ]
    assert all(c.value is CellValue.EMPTY for c in cells)
    assert game.has_empty_cells()
    assert not game.has_winner()
    assert game.state() is GameState.IN_PROGRESS


def test_cells_returns_detached_snapshot():
    game = TicTacToeGame()
    cells = game.cells()
    cells[0] = Cell(row=0, column=0, value=CellValue.HUMAN)
    cells.clear()
    assert len(game.cells()) == 9
    assert game.cells()[0].value is CellValue.EMPTY


def test_human_play_marks_cell():
    game = TicTacToeGame()
    placed = game.human_play(1, 2)
    assert placed == Cell(row=1, column=2, value=CellValue.HUMAN)
    assert game.board.get(1, 2) is CellValue.HUMAN


def test_two_human_plays_in_a_row_are_out_of_turn():
    game = TicTacToeGame()
    game.human_play(0, 0)
    before = game.cells()
    with pytest.raises(OutOfTurn):
        game.human_play(2, 2)
    assert game.cells() == before


def test_cpu_cannot_open_the_game():
    game = TicTacToeGame()
    with pytest.raises(OutOfTurn):
        game.cpu_play()
    assert all(c.is_empty for c in game.cells())


def test_cpu_cannot_play_twice():
    game = TicTacToeGame()
    game.human_play(0, 0)
    game.cpu_play()
    with pytest.raises(OutOfTurn):
        game.cpu_play()


@pytest.mark.parametrize(
    "row, column", [(-1, 0), (0, -1), (3, 0), (0, 3), (10, 10), (True, 0), (1.0, 1)]
)
def test_out_of_range_coordinates_rejected(row, column):
    game = TicTacToeGame()
    with pytest.raises(InvalidMove):
        game.human_play(row, column)
    assert all(c.is_empty for c in game.cells())


def test_occupied_cell_rejected_and_board_unchanged():
    game = TicTacToeGame()
    game.human_play(0, 0)
    cpu_cell = game.cpu_play()
    before = game.cells()

    with pytest.raises(CellOccupied):
        game.human_play(0, 0)
    assert game.cells() == before

    with pytest.raises(CellOccupied):
        game.human_play(cpu_cell.row, cpu_cell.column)
    assert game.cells() == before


def test_moves_after_cpu_win_are_rejected():
    game = TicTacToeGame.from_rows([[C, C, C], [H, H, E], [H, E, E]])
    assert game.is_cpu_winner()
    assert game.state() is GameState.CPU_WINS
    with pytest.raises(GameOver):
        game.human_play(2, 2)


def test_cpu_move_after_human_win_is_rejected():
    game = TicTacToeGame.from_rows([[H, H, H], [C, C, E], [E, E, E]])
    assert game.is_human_winner()
    with pytest.raises(GameOver):
        game.cpu_play()


def test_cpu_play_on_full_board_is_board_full():
    game = TicTacToeGame(
        board=Board.from_rows([[H, C, H], [H, C, C], [C, H, H]])
    )
    assert game.state() is GameState.DRAW
    with pytest.raises(BoardFull):
        game.cpu_play()
    with pytest.raises(GameOver):
        game.human_play(0, 0)


def test_restart_resets_any_position():
    game = TicTacToeGame()
    game.human_play(0, 0)
    game.cpu_play()
    game.human_play(2, 2)
    game.cpu_play()

    for _ in range(2):
        game.restart()
        assert all(c.value is CellValue.EMPTY for c in game.cells())
        assert game.has_winner() is False
        assert game.has_empty_cells() is True

    game.human_play(0, 0)
    assert game.board.get(0, 0) is CellValue.HUMAN


def test_restart_after_finished_game():
    game = TicTacToeGame(
        board=Board.from_rows([[C, C, C], [H, H, E], [H, E, E]])
    )
    game.restart()
    assert game.state() is GameState.IN_PROGRESS
    game.human_play(1, 1)


@pytest.mark.parametrize("line", WINNING_LINES)
@pytest.mark.parametrize("side", [CellValue.HUMAN, CellValue.CPU])
def test_every_line_is_detected(line, side):
    board = Board()
    for index in line:
        board.values[index] = side

    game = TicTacToeGame(board=board)
    assert game.has_winner()
    assert game.is_cpu_winner() is (side is CellValue.CPU)
    assert game.is_human_winner() is (side is CellValue.HUMAN)
    expected = GameState.CPU_WINS if side is CellValue.CPU else GameState.HUMAN_WINS
    assert game.state() is expected


def test_both_sides_winning_is_an_invariant_violation():
    board = Board.from_rows([[H, H, H], [C, C, C], [E, E, E]])
    with pytest.raises(InvariantViolation):
        board.winner()


def test_draw_is_derived_from_full_board_without_winner():
    game = TicTacToeGame(
        board=Board.from_rows([[H, C, H], [H, C, C], [C, H, H]])
    )
    assert not game.has_winner()
    assert not game.has_empty_cells()
    assert game.state() is GameState.DRAW


def test_drawing_sequence_ends_in_draw():
    game = TicTacToeGame()
    for row, column in [(0, 0), (2, 2), (2, 1), (0, 2), (1, 0)]:
        game.human_play(row, column)
        if game.has_empty_cells() and not game.has_winner():
            game.cpu_play()

    assert game.has_winner() is False
    assert game.has_empty_cells() is False
    assert game.state() is GameState.DRAW


def test_clone_is_independent():
    game = TicTacToeGame()
    game.human_play(0, 0)
    copy = game.clone()
    copy.cpu_play()
    assert game.board.count(CellValue.CPU) == 0
    assert copy.board.count(CellValue.CPU) == 1


def test_board_rejects_wrong_size():
    with pytest.raises(ValueError):
        Board(values=[E] * 8)


def test_empty_cells_in_row_major_order():
    board = Board.from_rows([[H, E, C], [E, H, E], [C, E, E]])
    assert board.empty_cells() == [(0, 1), (1, 0), (1, 2), (2, 1), (2, 2)]
    assert board.side_to_move() is CellValue.HUMAN


def test_board_passed_in_is_copied():
    board = Board()
    game = TicTacToeGame(board=board)
    game.human_play(0, 0)
    game.cpu_play()

    board.set(0, 1, H)
    board.set(0, 2, H)

    assert game.state() is GameState.IN_PROGRESS
    assert game.board.count(CellValue.HUMAN) == 1


def test_board_property_is_detached():
    game = TicTacToeGame()
    game.human_play(0, 0)
    game.cpu_play()

    leaked = game.board
    leaked.set(0, 1, H)
    leaked.set(0, 2, H)
    leaked.clear()

    assert game.board.count(CellValue.HUMAN) == 1
    assert game.board.count(CellValue.CPU) == 1
    assert game.state() is GameState.IN_PROGRESS


@pytest.mark.parametrize(
    "rows",
    [
        [[H, H, H, H], [E, E], [E, E, E]],
        [[E, E, E], [E, E, E]],
        [[E, E, E], [E, E, E], [E, E, E], []],
        [[E, E, E, E, E, E, E, E, E]],
    ],
)
def test_from_rows_rejects_ragged_grids(rows):
    with pytest.raises(ValueError):
        Board.from_rows(rows)


@pytest.mark.parametrize(
    "rows",
    [
        [[H, H, E], [E, E, E], [E, E, E]],
        [[C, E, E], [E, E, E], [E, E, E]],
        [[H, C, C], [C, E, E], [E, E, E]],
    ],
)
def test_impossible_piece_balance_is_an_invariant_violation(rows):
    board = Board.from_rows(rows)
    with pytest.raises(InvariantViolation):
        board.side_to_move()

    game = TicTacToeGame(board=board)
    with pytest.raises(InvariantViolation):
        game.human_play(2, 2)
