"""
Run a CHIP-8 program in a pygame window or in the terminal
"""

import argparse
import time

import pygame

from chipvm import EmulatorConfig, Machine, EmulatorError
from chipvm.logging import get_logger
from chipvm.rendering import display_to_rgb, display_to_text, create_color_scheme

# Modern key mapping
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


def draw_overlay_text(surface, text_lines, position, font, bg_color=(0, 0, 0), text_color=(255, 255, 255), alpha=120):
    """Draw text with semi-transparent background overlay"""
    if not text_lines:
        return

    line_height = font.get_height()
    max_width = max(font.size(line)[0] for line in text_lines)
    overlay = pygame.Surface((max_width + 16, len(text_lines) * line_height + 8))
    overlay.set_alpha(alpha)
    overlay.fill(bg_color)
    surface.blit(overlay, position)

    x, y = position
    for i, line in enumerate(text_lines):
        text_surface = font.render(line, True, text_color)
        surface.blit(text_surface, (x + 8, y + 4 + i * line_height))


def run_window(machine: Machine):
    """Window loop: one frame per timer tick, keypad read from the keyboard"""
    config = machine.config
    pygame.init()
    screen = pygame.display.set_mode((64 * config.scale, 32 * config.scale))
    pygame.display.set_caption("chipvm")
    clock = pygame.time.Clock()
    on_color, off_color = create_color_scheme(config.color_scheme)
    font = pygame.font.Font(None, 18)

    running = True
    paused = False
    show_debug = False
    halted = False
    frame = None

    get_logger().info("Controls: ESC=Quit, P=Pause, F5=Reset, F1=Debug")

    while running:
        clock.tick(config.timer_hz)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_p:
                    paused = not paused
                elif event.key == pygame.K_F1:
                    show_debug = not show_debug
                elif event.key == pygame.K_F5:
                    machine.reset()
                    halted = False
                elif event.key in KEY_MAP:
                    machine.press(KEY_MAP[event.key])
            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    machine.release(KEY_MAP[event.key])

        if not paused and not halted:
            try:
                machine.run_frame()
            except EmulatorError as e:
                machine.logger.error(str(e))
                halted = True

        new_frame = machine.consume_frame()
        if new_frame is not None:
            frame = display_to_rgb(new_frame, config.scale, on_color, off_color)

        if frame is not None:
            pygame.surfarray.blit_array(screen, frame.transpose(1, 0, 2))

        if show_debug:
            state = machine.state
            debug_lines = [
                f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}",
                f"Delay: {int(state.delay_timer)}  Sound: {int(state.sound_timer)}",
                " ".join(f"{int(v):02X}" for v in state.V),
                f"Status: {'HALTED' if halted else 'PAUSED' if paused else 'RUNNING'}",
            ]
            draw_overlay_text(screen, debug_lines, (5, 5), font, alpha=100)

        pygame.display.flip()

    pygame.quit()


def run_console(machine: Machine, frames: int):
    """Terminal loop: print the display whenever it changes"""
    frame_time = 1.0 / machine.config.timer_hz
    for _ in range(frames):
        start = time.time()
        machine.run_frame()

        display = machine.consume_frame()
        if display is not None:
            print("\033[H\033[J" + display_to_text(display), flush=True)

        time.sleep(max(0.0, frame_time - (time.time() - start)))


def parse_args():
    parser = argparse.ArgumentParser(description="Run a CHIP-8 program")
    parser.add_argument("rom", type=str, help="Path to the CHIP-8 ROM file")
    parser.add_argument("--instructions_per_second", type=int, default=None,
                        help="CPU frequency in Hz (default: 600)")
    parser.add_argument("--timer_hz", type=int, default=None,
                        help="Timer and frame rate in Hz (default: 60)")
    parser.add_argument("--strict_opcodes", action="store_true", default=None,
                        help="Stop on unsupported opcodes instead of logging them")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: 0)")
    parser.add_argument("--scale", type=int, default=None, help="Window scale (default: 8)")
    parser.add_argument("--color_scheme", type=str, default=None, help="Palette (default: classic)")
    parser.add_argument("--log_level", type=str, default=None, help="Log level (default: INFO)")
    parser.add_argument("--console", action="store_true",
                        help="Render in the terminal instead of a window")
    parser.add_argument("--frames", type=int, default=600,
                        help="Frames to run in console mode (default: 600)")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    machine = Machine(EmulatorConfig.from_args(args), sound_callback=lambda: machine.logger.info("BEEP!"))
    machine.load_file(args.rom)

    if args.console:
        run_console(machine, args.frames)
    else:
        run_window(machine)
