"""
Pygame renderer for both solver kinds.

Draws onto any ``pygame.Surface``, so it works with a real window as well
as an off-screen surface under the dummy SDL video driver. Screen
coordinates equal domain coordinates (+y down), no scaling.
"""

import numpy as np
import pygame
from typing import Optional

from ..core.particles import ParticleSnapshot
from ..solver import FluidSolver, SolverKind


class PygameRenderer:
    """Particle and dye renderer.

    Color modes: ``velocity`` (speed), ``density``, ``pressure``.
    """

    COLOR_MODES = ('velocity', 'density', 'pressure')

    def __init__(self, surface: pygame.Surface, max_speed: float = 400.0):
        self.surface = surface
        self.color_mode = 'velocity'
        self.max_speed = max_speed
        self.show_stats = True
        self.bg_color = (20, 22, 30)
        self._font: Optional[pygame.font.Font] = None

    def _velocity_colormap(self, particles: ParticleSnapshot) -> np.ndarray:
        """Speed from deep blue (slow) to white (fast)."""
        speed = np.sqrt(particles.velocity_x**2 + particles.velocity_y**2)
        t = np.clip(speed / self.max_speed, 0, 1)
        colors = np.zeros((len(t), 3), dtype=np.uint8)
        colors[:, 0] = (40 + t * 215).astype(np.uint8)
        colors[:, 1] = (110 + t * 145).astype(np.uint8)
        colors[:, 2] = 255
        return colors

    def _density_colormap(self, particles: ParticleSnapshot) -> np.ndarray:
        values = particles.density
        top = float(values.max()) if len(values) else 0.0
        t = values / top if top > 0 else np.zeros_like(values)
        colors = np.zeros((len(t), 3), dtype=np.uint8)
        colors[:, 0] = (t * 100).astype(np.uint8)
        colors[:, 1] = (60 + t * 150).astype(np.uint8)
        colors[:, 2] = (120 + t * 135).astype(np.uint8)
        return colors

    def _pressure_colormap(self, particles: ParticleSnapshot) -> np.ndarray:
        values = particles.pressure
        top = float(np.abs(values).max()) if len(values) else 0.0
        t = np.clip(values / top, -1, 1) if top > 0 else np.zeros_like(values)
        colors = np.full((len(t), 3), 255, dtype=np.uint8)
        # Blue for suction, red for compression
        pos = t >= 0
        colors[pos, 1] = ((1 - t[pos]) * 255).astype(np.uint8)
        colors[pos, 2] = ((1 - t[pos]) * 255).astype(np.uint8)
        colors[~pos, 0] = ((1 + t[~pos]) * 255).astype(np.uint8)
        colors[~pos, 1] = ((1 + t[~pos]) * 255).astype(np.uint8)
        return colors

    def particle_colors(self, particles: ParticleSnapshot) -> np.ndarray:
        if self.color_mode == 'density':
            return self._density_colormap(particles)
        if self.color_mode == 'pressure':
            return self._pressure_colormap(particles)
        return self._velocity_colormap(particles)

    def cycle_color_mode(self) -> str:
        idx = self.COLOR_MODES.index(self.color_mode)
        self.color_mode = self.COLOR_MODES[(idx + 1) % len(self.COLOR_MODES)]
        return self.color_mode

    def draw_particles(self, particles: ParticleSnapshot) -> int:
        """Draw every particle as a filled circle; returns the number drawn."""
        colors = self.particle_colors(particles)
        xs = particles.position_x.astype(int)
        ys = particles.position_y.astype(int)
        radii = np.maximum(particles.radius.astype(int), 1)
        for i in range(particles.count):
            color = (int(colors[i, 0]), int(colors[i, 1]), int(colors[i, 2]))
            pygame.draw.circle(self.surface, color, (int(xs[i]), int(ys[i])), int(radii[i]))
        return particles.count

    def draw_dye(self, dye: np.ndarray, cell_size: float):
        """Blit the interior of a dye field scaled up to the surface."""
        interior = dye[1:-1, 1:-1]
        shade = (np.clip(interior, 0, 1) * 255).astype(np.uint8)
        rgb = np.stack((shade // 3, shade // 2, shade), axis=-1)
        small = pygame.surfarray.make_surface(rgb)
        size = (int(interior.shape[0] * cell_size), int(interior.shape[1] * cell_size))
        self.surface.blit(pygame.transform.scale(small, size), (0, 0))

    def _draw_stats(self, lines):
        if self._font is None:
            self._font = pygame.font.Font(None, 20)
        y_offset = 8
        for line in lines:
            text = self._font.render(line, True, (230, 230, 230))
            self.surface.blit(text, (8, y_offset))
            y_offset += 18

    def render(self, solver: FluidSolver, fps: Optional[float] = None):
        """Draw one frame of ``solver`` (no display flip)."""
        self.surface.fill(self.bg_color)
        if solver.kind is SolverKind.PARTICLE:
            self.draw_particles(solver.particles)
            lines = [f"Particles: {solver.n_active:,}", f"Mode: {self.color_mode.title()}"]
        else:
            self.draw_dye(solver.dye, solver.cell_size)
            lines = [f"Grid: {solver.nx} x {solver.ny}"]
        if fps is not None:
            lines.append(f"FPS: {fps:.1f}")
        if self.show_stats:
            self._draw_stats(lines)
