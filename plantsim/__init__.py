"""PlantSim: procedural growth of individual plants in a shared ecosystem.

A discrete-time, individual-based model coupling:
  - Genetics-driven morphogenesis over a growing tree of typed organs
  - A resource economy of light, soil moisture and soil nutrients
  - Canopy shading rebuilt every tick from leaf altitudes
  - Population turnover through fruiting, seed dispersal and death

Rendering, windowing and species-file loading live outside this package;
the core only exposes the hooks those collaborators consume.
"""

__version__ = "0.1.0"
