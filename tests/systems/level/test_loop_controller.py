"""
test_loop_controller.py
-----------------------
Pytest tests for LoopController: staged loading, guards, overlays,
unloading and the external reset signal.
"""

from unittest.mock import MagicMock

import pytest

from level_loop.scenes.overlay_presenter import OverlayPresenter
from level_loop.systems.level import (
    AlreadyLoaded,
    AlreadyLoading,
    LeaveInfo,
    LevelParams,
    LifecycleStage,
    LoadStep,
    LoopState,
    LoopValues,
    StageFailure,
    UnknownUnloadReason,
    UnloadWhileLoading,
    UnloadWithoutLoad,
    encode_level,
)


def load_and_finish(controller, advance, view, which=3):
    controller.load_level(view, which)
    advance(3)
    assert controller.state == LoopState.LOADED


# ===========================================================
# Loading
# ===========================================================

def test_load_publishes_stages_in_order(make_controller, recorder, advance, arrive, view):
    controller = make_controller()
    arrive("LevelSelect")

    controller.load_level(view, 3)
    assert recorder.names == []
    assert controller.state == LoopState.LOADING

    advance()
    assert recorder.names == ["enter_level", "things_loaded"]

    advance()
    assert recorder.names == ["enter_level", "things_loaded", "ready_to_draw"]

    advance()
    assert recorder.names == ["enter_level", "things_loaded", "ready_to_draw", "ready_to_go"]
    assert controller.state == LoopState.LOADED


def test_is_loaded_only_after_ready_to_go(make_controller, events, advance, view):
    controller = make_controller()
    seen = []
    for name in ("enter_level", "things_loaded", "ready_to_draw", "ready_to_go"):
        events.subscribe(name, lambda event: seen.append(event.context.is_loaded))

    controller.load_level(view, 3)
    advance(2)
    assert controller.context.is_loaded is False

    advance()
    assert seen == [False, False, False, False]
    assert controller.context.is_loaded is True


def test_scheduler_released_when_load_completes(make_controller, ticker, advance, view):
    controller = make_controller()
    controller.load_level(view, 3)
    assert ticker.listener_count == 1

    advance(3)
    assert not controller.scheduler.is_running
    assert ticker.listener_count == 0


def test_index_load_identity_and_payload(make_controller, recorder, source, advance, view):
    controller = make_controller()
    load_and_finish(controller, advance, view, 3)

    assert controller.context.which == 3
    assert source.requested == [3]

    event = recorder.payload("ready_to_go")
    assert event.context is controller.context
    assert event.which == 3
    assert event.level == source.levels[3]
    assert isinstance(event.params, LevelParams)
    assert controller.context.name == LifecycleStage.READY_TO_GO


def test_blob_load_has_empty_identity_and_runs_decode_hook(make_config, make_controller,
                                                           source, advance, view):
    on_decode = MagicMock()
    controller = make_controller(make_config(on_decode=on_decode))
    blob = encode_level({"name": "Custom", "things": []})

    load_and_finish(controller, advance, view, blob)

    assert controller.context.which == ""
    assert source.decoded == [blob]
    on_decode.assert_called_once_with({"name": "Custom", "things": []})


def test_hooks_receive_view_context_and_params(make_config, make_controller, source, advance, view):
    before_entering = MagicMock()
    add_things = MagicMock()
    controller = make_controller(make_config(before_entering=before_entering, add_things=add_things))

    load_and_finish(controller, advance, view, 3)

    before_entering.assert_called_once_with(view, controller.context, source.levels[3], source)
    context, level, params = add_things.call_args[0]
    assert context is controller.context
    assert level is source.levels[3]
    assert params.which == 3


def test_on_init_called_once_with_controller(make_config, make_controller):
    on_init = MagicMock()
    controller = make_controller(make_config(on_init=on_init))
    on_init.assert_called_once_with(controller)


def test_references_resolved_before_things_loaded(make_config, make_controller, events, advance, view):
    links = {}

    def add_things(context, level, params):
        switch, door = {"type": "switch"}, {"type": "door"}
        # Subscribing ahead of publication is fine until resolution
        params.subscribe("door", lambda target: links.setdefault("switch", target))
        params.publish("door", door)
        params.publish("switch", switch)

    observed = []

    def on_things_loaded(event):
        observed.append((event.context.pubsub, dict(links)))

    events.subscribe("things_loaded", on_things_loaded)
    controller = make_controller(make_config(add_things=add_things))

    controller.load_level(view, 3)
    advance()

    assert observed == [(None, {"switch": {"type": "door"}})]


def test_aux_data_created_once(make_config, make_controller, advance, view):
    seen = []

    def add_things(context, level, params):
        first = params.get_or_add_data("scoreboard", "table")
        first["score"] = 10
        seen.append(first)
        seen.append(params.get_or_add_data("scoreboard", "group"))

    controller = make_controller(make_config(add_things=add_things))
    load_and_finish(controller, advance, view)

    assert seen[0] is seen[1]
    assert controller.context.data.get("scoreboard") == {"score": 10}


def test_new_group_hook_builds_group_data(make_config, make_controller, advance, view):
    new_group = MagicMock(return_value="group-handle")

    def add_things(context, level, params):
        params.get_or_add_data("markers", "group", "arg")

    controller = make_controller(make_config(add_things=add_things, new_group=new_group))
    load_and_finish(controller, advance, view)

    new_group.assert_called_once_with("arg")
    assert controller.context.data.get("markers") == "group-handle"


# ===========================================================
# Guards
# ===========================================================

def test_load_while_loading_raises(make_controller, view):
    controller = make_controller()
    controller.load_level(view, 3)

    with pytest.raises(AlreadyLoading):
        controller.load_level(view, 0)


def test_load_while_loaded_raises(make_controller, advance, view):
    controller = make_controller()
    load_and_finish(controller, advance, view)

    with pytest.raises(AlreadyLoaded):
        controller.load_level(view, 0)


@pytest.mark.parametrize("which", [1.5, None, True])
def test_load_rejects_bad_level_reference(make_controller, view, which):
    controller = make_controller()
    with pytest.raises(TypeError):
        controller.load_level(view, which)
    assert controller.state == LoopState.EMPTY


def test_unload_without_load_raises(make_controller):
    controller = make_controller()
    with pytest.raises(UnloadWithoutLoad):
        controller.unload_level("quit")


def test_unload_while_loading_raises(make_controller, advance, view):
    controller = make_controller()
    controller.load_level(view, 3)
    advance()

    with pytest.raises(UnloadWhileLoading):
        controller.unload_level("quit")


def test_unknown_unload_reason_raises(make_controller, advance, view):
    controller = make_controller()
    load_and_finish(controller, advance, view)

    with pytest.raises(UnknownUnloadReason):
        controller.unload_level("bored")
    with pytest.raises(ValueError):
        controller.unload_level("bored")
    assert controller.state == LoopState.LOADED


def test_guard_errors_leave_state_unchanged(make_controller, recorder, advance, view):
    controller = make_controller()
    load_and_finish(controller, advance, view)
    before = list(recorder.names)

    with pytest.raises(AlreadyLoaded):
        controller.load_level(view, 0)

    assert recorder.names == before
    assert controller.context.which == 3


# ===========================================================
# Value Sets
# ===========================================================

@pytest.mark.parametrize("origin, kind, wait", [
    ("LevelSelect", "normal", 1.5),
    ("Editor", "testing", 0.0),
    ("Title", "quick_test", 0.0),
])
def test_value_set_follows_origin(make_controller, arrive, view, origin, kind, wait):
    controller = make_controller()
    arrive(origin)

    controller.load_level(view, 3)

    assert controller.values.kind == kind
    assert controller.get_wait_to_end_time() == wait


def test_unknown_origin_uses_default_values(make_config, make_controller, view):
    controller = make_controller(make_config(default_values="testing"))

    controller.load_level(view, 3)

    assert controller.values.kind == "testing"


# ===========================================================
# Overlays
# ===========================================================

def test_start_overlay_gates_progress(make_config, make_controller, events, advance,
                                      arrive, view):
    presenter = OverlayPresenter(events, durations={"get_ready": 1.0})
    controller = make_controller(make_config(start_overlay="get_ready"))
    arrive("LevelSelect")

    controller.load_level(view, 3)
    advance(6)

    assert presenter.current.overlay_name == "get_ready"
    assert controller.scheduler.checkpoint == LoadStep.OVERLAY_WAIT
    assert controller.state == LoopState.LOADING

    presenter.update(1.0)
    assert not presenter.is_playing

    advance(1)
    assert controller.scheduler.checkpoint == LoadStep.SETTLE_WAIT
    advance(1)
    assert controller.state == LoopState.LOADED


def test_start_overlay_skipped_outside_normal_play(make_config, make_controller, events,
                                                   arrive, advance, view):
    shown = MagicMock()
    events.subscribe("show_overlay", shown)
    controller = make_controller(make_config(start_overlay="get_ready"))
    arrive("Editor")

    controller.load_level(view, 3)
    advance(3)

    shown.assert_not_called()
    assert controller.state == LoopState.LOADED


def test_suppressed_overlays_do_not_gate(make_config, make_controller, events, arrive,
                                         advance, view):
    presenter = OverlayPresenter(events)
    controller = make_controller(make_config(start_overlay="get_ready"))
    controller.overlays.suppress()
    arrive("LevelSelect")

    controller.load_level(view, 3)
    advance(3)

    assert not presenter.is_playing
    assert controller.state == LoopState.LOADED


def test_suppression_from_config(make_config, make_controller, events, arrive, advance, view):
    shown = MagicMock()
    events.subscribe("show_overlay", shown)
    controller = make_controller(make_config(start_overlay="get_ready", suppress_overlays=True))
    arrive("LevelSelect")

    controller.load_level(view, 3)
    advance(3)

    shown.assert_not_called()
    assert controller.state == LoopState.LOADED


def test_missing_presenter_does_not_stall(make_config, make_controller, arrive, advance, view):
    controller = make_controller(make_config(start_overlay="get_ready"))
    arrive("LevelSelect")

    controller.load_level(view, 3)
    advance(3)

    assert controller.state == LoopState.LOADED


# ===========================================================
# Unloading
# ===========================================================

@pytest.mark.parametrize("why, overlay", [("won", "level_won"), ("lost", "level_lost")])
def test_unload_overlay_precedes_leave(make_config, make_controller, events, recorder,
                                       arrive, advance, view, why, overlay):
    presenter = OverlayPresenter(events)
    controller = make_controller(make_config(win_overlay="level_won", lost_overlay="level_lost"))
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)

    controller.unload_level(why)

    assert recorder.names[-1] == "level_done"
    assert presenter.current.overlay_name == overlay
    assert controller.state == LoopState.UNLOADING
    assert controller.context.why == why
    assert controller.context.is_loaded is False

    presenter.skip()

    assert recorder.names[-3:] == ["level_done", "pre_leave_level", "leave_level"]
    assert recorder.payload("leave_level").why == why


def test_quit_leaves_without_overlay(make_config, make_controller, events, recorder,
                                     arrive, advance, view):
    shown = MagicMock()
    events.subscribe("show_overlay", shown)
    controller = make_controller(make_config(win_overlay="level_won", lost_overlay="level_lost"))
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)

    controller.unload_level("quit")

    shown.assert_not_called()
    assert recorder.names[-3:] == ["level_done", "pre_leave_level", "leave_level"]


def test_full_event_order(make_controller, recorder, arrive, advance, view):
    controller = make_controller()
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)

    controller.unload_level("won")

    assert recorder.names == [
        "enter_level", "things_loaded", "ready_to_draw", "ready_to_go",
        "level_done", "pre_leave_level", "leave_level",
    ]


def test_leave_waits_for_end_delay(make_controller, scenes, arrive, advance, view):
    controller = make_controller()
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)

    controller.unload_level("quit")
    assert scenes.active_name == "Level"

    advance(1, dt=1.0)
    assert scenes.active_name == "Level"

    advance(1, dt=1.0)
    assert scenes.active_name == "LevelSelect"
    assert scenes.last_effect == "fade"


def test_leave_without_delay_is_immediate(make_controller, scenes, arrive, advance, view):
    controller = make_controller()
    arrive("Editor")
    load_and_finish(controller, advance, view)

    controller.unload_level("won")

    assert scenes.active_name == "Editor"


def test_callable_destination_receives_leave_info(make_config, make_controller, scenes,
                                                  arrive, advance, view):
    pick = MagicMock(return_value="Title")
    controller = make_controller(make_config(testing_values=LoopValues("testing", pick, 0.0)))
    arrive("Editor")
    load_and_finish(controller, advance, view)

    controller.unload_level("lost")

    pick.assert_called_once_with(LeaveInfo(3, "lost"))
    assert scenes.active_name == "Title"


def test_missing_destination_stays_put(make_config, make_controller, scenes, recorder,
                                       arrive, advance, view):
    controller = make_controller(make_config(testing_values=LoopValues("testing", None, 0.0)))
    arrive("Editor")
    load_and_finish(controller, advance, view)

    controller.unload_level("quit")

    assert recorder.names[-1] == "leave_level"
    assert scenes.active_name == "Level"
    assert controller.state == LoopState.UNLOADING


def test_unload_when_not_loaded_is_noop(make_controller, recorder, arrive, advance, view):
    controller = make_controller()
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)

    controller.unload_level("quit")
    count = len(recorder.names)

    # Delay still pending: a second unload changes nothing
    controller.unload_level("won")

    assert len(recorder.names) == count
    assert controller.context.why == "quit"


def test_unload_after_reset_raises(make_controller, arrive, advance, view):
    controller = make_controller()
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)

    controller.unload_level("quit")
    advance(1, dt=2.0)

    assert controller.state == LoopState.EMPTY
    with pytest.raises(UnloadWithoutLoad):
        controller.unload_level("quit")


# ===========================================================
# Reset Signal
# ===========================================================

def test_reset_releases_level_and_runs_cleanup(make_config, make_controller, scenes,
                                               arrive, advance, view):
    cleanup = MagicMock()
    reset_level = MagicMock()
    controller = make_controller(make_config(cleanup=cleanup, reset_level=reset_level))
    arrive("LevelSelect")
    reset_level.reset_mock()
    load_and_finish(controller, advance, view)
    context = controller.context

    scenes.go_to_scene("Title")

    cleanup.assert_called_once_with(context)
    reset_level.assert_called_once_with()
    assert controller.context is None
    assert controller.state == LoopState.EMPTY


def test_reset_without_level_skips_cleanup(make_config, make_controller, events):
    cleanup = MagicMock()
    reset_level = MagicMock()
    make_controller(make_config(cleanup=cleanup, reset_level=reset_level))

    events.dispatch("enter_menus")

    cleanup.assert_not_called()
    reset_level.assert_called_once_with()


def test_reset_aborts_load_in_flight(make_controller, events, recorder, ticker, advance, view):
    controller = make_controller()
    controller.load_level(view, 3)
    advance()

    events.dispatch("enter_menus")
    advance(3)

    assert recorder.names == ["enter_level", "things_loaded"]
    assert controller.state == LoopState.EMPTY
    assert ticker.listener_count == 0

    controller.load_level(view, 0)
    advance(3)
    assert controller.state == LoopState.LOADED
    assert controller.context.which == 0


def test_reset_cancels_pending_leave(make_controller, scenes, arrive, advance, view):
    controller = make_controller()
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)
    controller.unload_level("quit")

    scenes.go_to_scene("Title")
    advance(1, dt=2.0)

    assert scenes.active_name == "Title"


def test_reset_from_inside_a_step_stops_the_load(make_config, make_controller, events,
                                                 recorder, ticker, advance, view):
    add_things = MagicMock()
    cleanup = MagicMock()
    controller = make_controller(make_config(add_things=add_things, cleanup=cleanup))
    events.subscribe("enter_level", lambda event: events.dispatch("enter_menus"))

    controller.load_level(view, 3)
    context = controller.context
    advance(3)

    add_things.assert_not_called()
    cleanup.assert_called_once_with(context)
    assert recorder.names == ["enter_level"]
    assert context.is_loaded is False
    assert controller.state == LoopState.EMPTY
    assert ticker.listener_count == 0


def test_reset_during_unload_overlay_drops_leave(make_config, make_controller, events, scenes,
                                                 recorder, arrive, advance, view):
    presenter = OverlayPresenter(events)
    controller = make_controller(make_config(win_overlay="level_won"))
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)
    controller.unload_level("won")

    scenes.go_to_scene("Title")
    presenter.skip()
    advance(1, dt=2.0)
    advance(1, dt=2.0)

    assert recorder.names[-1] == "level_done"
    assert "leave_level" not in recorder.names
    assert scenes.active_name == "Title"


def test_stale_unload_overlay_leaves_next_level_alone(make_config, make_controller, events,
                                                      scenes, recorder, arrive, advance, view):
    presenter = OverlayPresenter(events)
    controller = make_controller(make_config(win_overlay="level_won"))
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)
    controller.unload_level("won")

    scenes.go_to_scene("Title")
    arrive("LevelSelect")
    load_and_finish(controller, advance, view, 0)
    presenter.skip()
    advance(1, dt=2.0)

    assert "pre_leave_level" not in recorder.names
    assert controller.state == LoopState.LOADED
    assert controller.context.which == 0
    assert scenes.active_name == "Level"


def test_level_can_be_reloaded_after_reset(make_controller, recorder, arrive, advance, view):
    controller = make_controller()
    arrive("Editor")
    load_and_finish(controller, advance, view)
    controller.unload_level("won")

    arrive("Editor")
    load_and_finish(controller, advance, view, 0)

    assert recorder.names.count("ready_to_go") == 2
    assert controller.context.which == 0


# ===========================================================
# Failures
# ===========================================================

def test_stage_failure_raised_from_tick(make_config, make_controller, recorder, ticker,
                                        advance, view):
    error = RuntimeError("boom")

    def add_things(context, level, params):
        raise error

    controller = make_controller(make_config(add_things=add_things))
    controller.load_level(view, 3)

    with pytest.raises(StageFailure) as info:
        advance()

    failure = info.value
    assert failure.step == LoadStep.ADD_THINGS
    assert failure.error is error
    assert failure.__cause__ is error
    assert failure.run_id == controller.scheduler.run_id
    assert "boom" in failure.trace

    assert recorder.names == ["enter_level"]
    assert controller.state == LoopState.FAILED
    assert ticker.listener_count == 0


def test_failed_level_blocks_load_until_reset(make_config, make_controller, events, advance, view):
    on_failure = MagicMock()

    def add_things(context, level, params):
        raise KeyError("missing")

    controller = make_controller(make_config(add_things=add_things), on_failure=on_failure)
    controller.load_level(view, 3)
    advance()

    on_failure.assert_called_once()
    assert isinstance(on_failure.call_args[0][0], StageFailure)

    with pytest.raises(AlreadyLoaded):
        controller.load_level(view, 3)

    events.dispatch("enter_menus")
    assert controller.state == LoopState.EMPTY


def test_listener_error_fails_the_load(make_controller, events, advance, view):
    def broken(event):
        raise ValueError("listener broke")

    events.subscribe("things_loaded", broken)
    controller = make_controller(on_failure=MagicMock())
    controller.load_level(view, 3)
    advance()

    failure = controller.on_failure.call_args[0][0]
    assert failure.step == LoadStep.THINGS_LOADED
    assert isinstance(failure.error, ValueError)


def test_unknown_level_index_fails_resolution(make_controller, advance, view):
    controller = make_controller(on_failure=MagicMock())
    controller.load_level(view, 42)
    advance()

    failure = controller.on_failure.call_args[0][0]
    assert failure.step == LoadStep.RESOLVE_LEVEL
    assert controller.state == LoopState.FAILED


def test_second_unload_policy_won_then_lost(make_controller, recorder, arrive, advance, view):
    controller = make_controller()
    arrive("LevelSelect")
    load_and_finish(controller, advance, view)

    controller.unload_level("won")
    controller.unload_level("lost")
    assert recorder.names.count("level_done") == 1
    assert controller.context.why == "won"

    # Return delay elapses; entering the menu sends the reset signal
    advance(1, dt=2.0)
    with pytest.raises(UnloadWithoutLoad):
        controller.unload_level("lost")
