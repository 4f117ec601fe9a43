import pytest

from chip8.constants import FONT_END, FONTSET, PROGRAM_START
from chip8.machine import RUNNING, AwaitingKey

from conftest import program, run


# ---- keypad ----

def test_skip_if_pressed(machine):
    machine.V[2] = 0xB
    machine.press_key(0xB)
    run(machine, 0xE29E)
    assert machine.pc == 0x204


def test_skip_if_not_pressed(machine):
    machine.V[2] = 0xB
    run(machine, 0xE2A1)
    assert machine.pc == 0x204

    machine.reset()
    machine.V[2] = 0xB
    machine.press_key(0xB)
    run(machine, 0xE2A1)
    assert machine.pc == 0x202


def test_key_lookup_uses_low_nibble(machine):
    machine.V[0] = 0x13
    machine.press_key(0x3)
    run(machine, 0xE09E)
    assert machine.pc == 0x204


def test_set_keys(machine):
    states = [False] * 16
    states[5] = True
    machine.set_keys(states)
    assert machine.keys[5]
    assert machine.keys.sum() == 1
    machine.release_key(5)
    assert not machine.keys.any()


@pytest.mark.parametrize("bad", [-1, 16])
def test_press_key_rejects_out_of_range(machine, bad):
    with pytest.raises(ValueError):
        machine.press_key(bad)


def test_set_keys_rejects_wrong_shape(machine):
    with pytest.raises(ValueError):
        machine.set_keys([True] * 8)


# ---- Fx0A ----

def test_wait_for_key_pauses_until_pressed(machine):
    run(machine, 0xF00A, 0x6155)
    assert machine.mode == AwaitingKey(0)
    assert machine.pc == 0x202

    for _ in range(5):
        machine.step()
    assert machine.pc == 0x202
    assert machine.V[1] == 0

    machine.press_key(0x7)
    machine.step()
    assert machine.V[0] == 0x7
    assert machine.mode == RUNNING
    assert machine.pc == 0x202

    machine.step()
    assert machine.V[1] == 0x55
    assert machine.pc == 0x204


def test_wait_for_key_needs_a_fresh_press(machine):
    machine.press_key(0x2)
    run(machine, 0xF30A)
    machine.step()
    assert machine.awaiting_key

    machine.press_key(0x9)
    machine.step()
    assert machine.V[3] == 0x9
    assert not machine.awaiting_key


def test_held_key_counts_after_release_and_press(machine):
    machine.press_key(0x2)
    run(machine, 0xF30A)
    machine.release_key(0x2)
    machine.step()
    assert machine.awaiting_key
    machine.press_key(0x2)
    machine.step()
    assert machine.V[3] == 0x2


def test_timers_keep_running_while_waiting(machine):
    machine.delay_timer = 3
    run(machine, 0xF00A)
    machine.tick_timers()
    assert machine.delay_timer == 2
    assert machine.awaiting_key


def test_reset_cancels_wait(machine):
    run(machine, 0xF00A)
    machine.reset()
    assert machine.mode == RUNNING


# ---- timers ----

def test_timer_opcodes(machine):
    machine.V[1] = 30
    run(machine, 0xF115, 0xF118, 0xF207)
    assert machine.delay_timer == 30
    assert machine.sound_timer == 30
    assert machine.V[2] == 30


def test_tick_timers_counts_down_and_holds_at_zero(machine):
    machine.delay_timer = 2
    machine.sound_timer = 1
    assert machine.sound_on
    machine.tick_timers()
    assert machine.delay_timer == 1
    assert machine.sound_timer == 0
    assert not machine.sound_on
    machine.tick_timers()
    machine.tick_timers()
    assert machine.delay_timer == 0
    assert machine.sound_timer == 0


def test_step_does_not_touch_timers(machine):
    machine.delay_timer = 5
    run(machine, 0x6000, 0x6000, 0x6000)
    assert machine.delay_timer == 5


# ---- reset ----

def test_reset_restores_power_on_state(machine):
    memory, stack, framebuffer, keys = machine.memory, machine.stack, machine.framebuffer, machine.keys
    run(machine, 0x6A12, 0xA123, 0x2300, steps=3)
    machine.memory[0x000] = 0
    machine.framebuffer[0, 0] = True
    machine.press_key(4)
    machine.delay_timer = machine.sound_timer = 9

    machine.reset()

    assert bytes(machine.memory[:FONT_END]) == FONTSET
    assert not any(machine.memory[FONT_END:])
    assert machine.pc == PROGRAM_START
    assert machine.I == 0
    assert machine.V == [0] * 16
    assert machine.sp == 0
    assert not machine.stack.any()
    assert not machine.framebuffer.any()
    assert not machine.keys.any()
    assert machine.delay_timer == machine.sound_timer == 0
    assert machine.cycles == 0

    # storage is cleared in place
    assert machine.memory is memory
    assert machine.stack is stack
    assert machine.framebuffer is framebuffer
    assert machine.keys is keys


def test_cycles_count_fetched_instructions(machine):
    run(machine, 0xF00A)
    machine.step()
    machine.step()
    assert machine.cycles == 1


def test_peek_does_not_advance(machine):
    machine.memory[0x200:0x202] = program(0xA2F0)
    assert machine.peek_opcode() == 0xA2F0
    assert machine.pc == 0x200
