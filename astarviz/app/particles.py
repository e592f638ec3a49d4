# astarviz/app/particles.py
"""Colored particle bursts (visuals only; no logic)."""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple
import pygame

RGB = Tuple[int, int, int]


@dataclass
class Particle:
    x: float
    y: float
    color: RGB
    vx: float
    vy: float
    size: float
    life: float = 1.0
    decay: float = 0.02

    def update(self) -> None:
        self.x += self.vx
        self.y += self.vy
        self.life -= self.decay    # fade out
        self.size *= 0.98          # shrink

    @property
    def alive(self) -> bool:
        return self.life > 0


class ParticleSystem:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.particles: List[Particle] = []

    def __len__(self) -> int:
        return len(self.particles)

    def burst(self, x: float, y: float, color: RGB, count: int = 10) -> None:
        r = self.rng
        for _ in range(count):
            self.particles.append(Particle(
                x, y, color,
                vx=(r.random() - 0.5) * 2,
                vy=(r.random() - 0.5) * 2,
                size=r.random() * 3 + 2,
            ))

    def update(self) -> None:
        for p in self.particles:
            p.update()
        self.particles = [p for p in self.particles if p.alive]

    def clear(self) -> None:
        self.particles.clear()

    def draw(self, screen: pygame.Surface) -> None:
        for p in self.particles:
            radius = max(1, int(p.size))
            s = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
            alpha = max(0, min(255, int(p.life * 255)))
            pygame.draw.circle(s, (*p.color, alpha), (radius, radius), radius)
            screen.blit(s, (int(p.x) - radius, int(p.y) - radius))
