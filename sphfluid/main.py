#!/usr/bin/env python3
"""
Interactive front end.

Usage:
    python -m sphfluid.main                     # Particle fluid, water preset
    python -m sphfluid.main --preset splash     # Bouncy preset
    python -m sphfluid.main --solver grid       # Stable-fluids grid
    python -m sphfluid.main --backend numba     # Numba backend
    python -m sphfluid.main --dam-break         # Start from a block of fluid

Controls:
    Left drag       push fluid along the drag
    Right click     radial burst (hold Shift to pull inward)
    A / D (held)    attract to / repel from the pointer (particles)
    C               cycle color mode
    R               reset
    Space           pause
    Esc             quit
"""

import argparse
import sys

import pygame

from .config import SimulationConfig
from .core.backend import list_backends
from .scenarios.presets import dam_break_positions, get_preset, list_presets
from .simulation import ParticleFluidSimulation
from .solver import SolverKind, create_solver
from .visualization.pygame_renderer import PygameRenderer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive 2-D fluid")
    parser.add_argument(
        "--preset",
        default="water",
        choices=list_presets(),
        help="Parameter preset (default: water)"
    )
    parser.add_argument(
        "--solver",
        default=SolverKind.PARTICLE.value,
        choices=[k.value for k in SolverKind],
        help="Solver kind (default: particle)"
    )
    parser.add_argument(
        "--backend",
        choices=["cpu", "numba"],
        default="cpu",
        help="Computation backend (default: cpu)"
    )
    parser.add_argument("--width", type=int, default=800, help="Window width (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Window height (default: 600)")
    parser.add_argument(
        "--particles",
        type=int,
        default=None,
        help="Maximum number of particles (default: from preset)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for spawning")
    parser.add_argument(
        "--dam-break",
        action="store_true",
        help="Start (and reset) with a block of fluid against the left wall"
    )
    parser.add_argument("--fps", type=int, default=60, help="Target FPS (default: 60)")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def make_config(args) -> SimulationConfig:
    overrides = dict(
        domain_width=float(args.width),
        domain_height=float(args.height),
        seed=args.seed,
        log_level=args.log_level,
    )
    if args.particles is not None:
        overrides["max_particles"] = args.particles

    backend = args.backend
    if not list_backends().get(backend, False):
        print(f"Warning: Backend '{backend}' not available, using cpu")
        backend = "cpu"
    overrides["backend"] = backend
    return get_preset(args.preset, **overrides)


def fill_dam_break(solver: ParticleFluidSimulation) -> int:
    """Drop a hexagonal block of particles into the left part of the domain."""
    added = 0
    for x, y in dam_break_positions(solver.config):
        if solver.add_particle(x, y) is None:
            break
        added += 1
    return added


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = make_config(args)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2

    print(f"Loading preset: {args.preset} ({args.solver} solver, {config.backend} backend)")
    solver = create_solver(args.solver, config)
    dam_break = args.dam_break and isinstance(solver, ParticleFluidSimulation)
    if dam_break:
        print(f"Dam break: {fill_dam_break(solver)} particles")

    pygame.init()
    screen = pygame.display.set_mode((args.width, args.height), pygame.RESIZABLE)
    pygame.display.set_caption(f"sphfluid - {args.preset}")
    clock = pygame.time.Clock()
    renderer = PygameRenderer(screen)

    paused = False
    running = True
    last_mouse = None
    while running:
        dt = clock.tick(args.fps) / 1000.0

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.VIDEORESIZE:
                screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                renderer.surface = screen
                solver.on_resize(event.w, event.h)
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    paused = not paused
                elif event.key == pygame.K_r:
                    solver.reset()
                    if dam_break:
                        fill_dam_break(solver)
                elif event.key == pygame.K_c:
                    print(f"Color mode: {renderer.cycle_color_mode()}")
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 3:
                mods = pygame.key.get_mods()
                strength = -300.0 if mods & pygame.KMOD_SHIFT else 300.0
                solver.apply_radial_impulse(event.pos[0], event.pos[1],
                                            config.interaction_radius * 1.5, strength)

        # Drag
        mouse = pygame.mouse.get_pos()
        if pygame.mouse.get_pressed()[0]:
            if last_mouse is not None:
                solver.apply_interaction(last_mouse[0], last_mouse[1], mouse[0], mouse[1])
            last_mouse = mouse
        else:
            last_mouse = None

        if isinstance(solver, ParticleFluidSimulation):
            keys = pygame.key.get_pressed()
            if keys[pygame.K_a]:
                solver.set_pointer_force(mouse[0], mouse[1], strength=400.0)
            elif keys[pygame.K_d]:
                solver.set_pointer_force(mouse[0], mouse[1], strength=-400.0)

        if not paused:
            solver.step(dt)

        renderer.render(solver, clock.get_fps())
        pygame.display.flip()

    pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
