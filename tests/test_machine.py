import pytest

from pictionary.apps.game.machine import PUSH_VIEWS, Transition
from pictionary.apps.game.models import MAX_ATTEMPTS, ROUND_CEILING, Player, RoomStatus
from pictionary.apps.game.schema import GameCompleteMessage, RoundCompleteMessage, WrongGuessMessage
from pictionary.core.errors import (
    ActionInFlight,
    GameNotActive,
    InvalidMessage,
    NoAttemptsLeft,
    NotYourTurn,
    PlayerNotInRoom,
    WordLocked,
)
from pictionary.services.image_client import ImageResult, system_prompt


def show_image(machine, room, drawer_id, prompt="a round italian dish with cheese"):
    t = machine.submit_prompt(room, drawer_id, prompt)
    return machine.resolve_image(room, t.image_round, ImageResult(image_url="https://images.test/x.png"))


def fail_image(machine, room, drawer_id, prompt="a round italian dish with cheese"):
    t = machine.submit_prompt(room, drawer_id, prompt)
    return machine.resolve_image(room, t.image_round, ImageResult.failure())


# ── multiplayer ──────────────────────────────────────

def test_correct_guess_scores_and_swaps_roles(machine, multi_room):
    room, a, b = multi_room
    show_image(machine, room, a)

    t = machine.submit_guess(room, b, "pizza")

    assert room.player(b).score == 10
    assert room.player(a).score == 5
    assert room.current_round == 2
    assert room.drawer.id == b
    assert not room.player(a).is_drawer
    assert room.word != "pizza"
    assert room.prompts_submitted == [] and room.guesses == [] and room.current_image is None

    notice = t.notices[0]
    assert isinstance(notice, RoundCompleteMessage)
    assert notice.word == "pizza"
    assert notice.round == 1
    assert notice.points_earned == {"guesser": 10, "drawer": 5}
    assert t.outbox[-1] is PUSH_VIEWS


def test_guess_compare_ignores_case_and_whitespace(machine, multi_room):
    room, a, b = multi_room
    show_image(machine, room, a)

    t = machine.submit_guess(room, b, "  PiZZa ")

    assert isinstance(t.notices[0], RoundCompleteMessage)
    assert room.player(b).score == 10


def test_three_wrong_guesses_force_advance(machine, multi_room):
    room, a, b = multi_room
    show_image(machine, room, a)

    first = machine.submit_guess(room, b, "pasta")
    second = machine.submit_guess(room, b, "bread")
    third = machine.submit_guess(room, b, "cake")

    assert isinstance(first.notices[0], WrongGuessMessage)
    assert first.notices[0].attempts_remaining == 2
    assert second.notices[0].attempts_remaining == 1

    notice = third.notices[0]
    assert isinstance(notice, RoundCompleteMessage)
    assert notice.word == "pizza"
    assert notice.points_earned == {"guesser": 0, "drawer": 0}
    assert room.player(a).score == 0 and room.player(b).score == 0
    assert room.current_round == 2
    assert room.drawer.id == b


def test_final_round_correct_guess_ends_game(machine, multi_room):
    room, a, b = multi_room
    room.current_round = ROUND_CEILING
    show_image(machine, room, a)

    t = machine.submit_guess(room, b, "pizza")

    assert room.status == RoomStatus.ENDED
    assert room.current_round == ROUND_CEILING
    assert [type(n) for n in t.notices] == [RoundCompleteMessage, GameCompleteMessage]
    final = t.notices[1].final_scores
    assert [(s.name, s.score) for s in final] == [("B", 10), ("A", 5)]

    with pytest.raises(GameNotActive):
        machine.submit_prompt(room, a, "anything")


def test_final_round_exhaustion_also_ends_game(machine, multi_room):
    room, a, b = multi_room
    room.current_round = ROUND_CEILING
    show_image(machine, room, a)
    for guess in ("one", "two", "three"):
        t = machine.submit_guess(room, b, guess)

    assert room.status == RoomStatus.ENDED
    assert isinstance(t.notices[-1], GameCompleteMessage)


def test_exactly_one_drawer_across_rounds(machine, multi_room):
    room, a, b = multi_room
    for _ in range(ROUND_CEILING - 1):
        drawer = room.drawer
        guesser = next(p for p in room.players if p is not drawer)
        show_image(machine, room, drawer.id)
        machine.submit_guess(room, guesser.id, room.word)
        assert room.status == RoomStatus.PLAYING
        assert sum(p.is_drawer for p in room.players) == 1
        assert room.drawer is guesser

    assert room.current_round == ROUND_CEILING


def test_roles_are_enforced(machine, multi_room):
    room, a, b = multi_room
    with pytest.raises(NotYourTurn):
        machine.submit_prompt(room, b, "a cat")
    with pytest.raises(NotYourTurn):
        machine.submit_guess(room, b, "pizza")  # no image yet

    show_image(machine, room, a)
    with pytest.raises(NotYourTurn):
        machine.submit_guess(room, a, "pizza")
    with pytest.raises(PlayerNotInRoom):
        machine.submit_guess(room, 9999, "pizza")


def test_waiting_room_rejects_actions(machine, registry):
    code, a = registry.create_room("A")
    room = registry.get_room(code)
    with pytest.raises(GameNotActive):
        machine.submit_prompt(room, a, "a cat")


def test_in_flight_request_blocks_prompt_guess_and_word(machine, multi_room):
    room, a, b = multi_room
    show_image(machine, room, a)
    t = machine.submit_prompt(room, a, "cheesy slice")

    assert room.generating
    assert t.image_prompt == "cheesy slice"
    assert t.outbox == [PUSH_VIEWS]
    with pytest.raises(ActionInFlight):
        machine.submit_prompt(room, a, "again")
    with pytest.raises(ActionInFlight):
        machine.submit_guess(room, b, "pizza")
    with pytest.raises(ActionInFlight):
        machine.generate_word(room, a)


def test_empty_prompt_and_guess_are_invalid(machine, multi_room):
    room, a, b = multi_room
    with pytest.raises(InvalidMessage):
        machine.submit_prompt(room, a, "   ")
    show_image(machine, room, a)
    with pytest.raises(InvalidMessage):
        machine.submit_guess(room, b, " ")
    assert room.guesses == []


def test_failed_image_consumes_attempt(machine, multi_room):
    room, a, b = multi_room
    t = fail_image(machine, room, a)

    assert room.attempts_remaining == MAX_ATTEMPTS - 1
    assert room.current_image is None
    assert room.error
    assert not room.generating
    assert t.outbox == [PUSH_VIEWS]

    # the drawer can try again and the error clears
    show_image(machine, room, a)
    assert room.error is None
    assert room.attempts_remaining == MAX_ATTEMPTS - 2


def test_three_failed_images_exhaust_round(machine, multi_room):
    room, a, b = multi_room
    fail_image(machine, room, a)
    fail_image(machine, room, a)
    t = fail_image(machine, room, a)

    assert isinstance(t.notices[0], RoundCompleteMessage)
    assert t.notices[0].points_earned == {"guesser": 0, "drawer": 0}
    assert room.current_round == 2


def test_final_guess_after_last_prompt(machine, multi_room):
    room, a, b = multi_room
    for _ in range(MAX_ATTEMPTS):
        show_image(machine, room, a)

    assert room.attempts_remaining == 0
    assert room.can_guess
    with pytest.raises(NoAttemptsLeft):
        machine.submit_prompt(room, a, "one more")

    t = machine.submit_guess(room, b, "pasta")

    assert isinstance(t.notices[0], RoundCompleteMessage)
    assert room.current_round == 2


def test_stale_image_result_is_dropped(machine, multi_room):
    room, a, b = multi_room
    t = machine.submit_prompt(room, a, "cheese")

    stale = machine.resolve_image(room, t.image_round + 1, ImageResult(image_url="https://old.png"))

    assert stale.is_empty
    assert room.generating
    assert room.current_image is None


def test_set_word_only_before_first_guess(machine, multi_room):
    room, a, b = multi_room
    machine.set_word(room, a, "  Lighthouse ")
    assert room.word == "Lighthouse"

    with pytest.raises(NotYourTurn):
        machine.set_word(room, b, "boat")

    show_image(machine, room, a)
    machine.submit_guess(room, b, "tower")
    with pytest.raises(WordLocked):
        machine.set_word(room, a, "boat")
    with pytest.raises(WordLocked):
        machine.generate_word(room, a)


def test_generate_word_uses_category(machine, word_bank, multi_room):
    room, a, b = multi_room
    machine.generate_word(room, a, "animals")
    assert room.word in word_bank.words("animals")
    assert room.word != "pizza"


# ── single player ────────────────────────────────────

def test_single_player_first_connect_requests_image(machine, single_room):
    room, player = single_room
    assert room.status == RoomStatus.PLAYING
    assert room.drawer is None

    t = machine.player_connected(room, player)

    assert t.image_prompt == system_prompt("pizza", 0)
    assert t.outbox == [PUSH_VIEWS]
    assert room.generating


def test_single_player_wrong_guess_requests_next_variation(machine, single_room):
    room, player = single_room
    t = machine.player_connected(room, player)
    machine.resolve_image(room, t.image_round, ImageResult(image_url="https://images.test/1.png"))

    t = machine.submit_guess(room, player, "pasta")

    assert isinstance(t.notices[0], WrongGuessMessage)
    assert t.image_prompt == system_prompt("pizza", 1)
    assert room.attempts_remaining == 1


def test_single_player_scoring_scales_with_guesses(machine, single_room):
    room, player = single_room
    t = machine.player_connected(room, player)
    machine.resolve_image(room, t.image_round, ImageResult(image_url="https://images.test/1.png"))
    t = machine.submit_guess(room, player, "pasta")
    machine.resolve_image(room, t.image_round, ImageResult(image_url="https://images.test/2.png"))

    t = machine.submit_guess(room, player, "pizza")

    assert room.player(player).score == 7
    assert t.notices[0].points_earned == {"guesser": 7}
    assert room.current_round == 2
    # the next round starts drawing right away
    assert t.image_prompt is not None
    assert room.generating


def test_single_player_failed_image_retries_with_next_variation(machine, single_room):
    room, player = single_room
    t = machine.player_connected(room, player)

    t = machine.resolve_image(room, t.image_round, ImageResult.failure())

    assert t.image_prompt == system_prompt("pizza", 1)
    assert room.error
    assert room.attempts_remaining == 1


def test_single_player_cannot_prompt_or_pick_word(machine, single_room):
    room, player = single_room
    with pytest.raises(NotYourTurn):
        machine.submit_prompt(room, player, "a pizza")
    with pytest.raises(NotYourTurn):
        machine.set_word(room, player, "boat")


# ── building blocks ──────────────────────────────────

def test_score_never_goes_down():
    player = Player(id=1, name="A")
    with pytest.raises(ValueError):
        player.award(-1)


def test_transition_collapses_consecutive_view_pushes():
    t = Transition().push_views().push_views()
    t.extend(Transition().push_views())
    assert t.outbox == [PUSH_VIEWS]
