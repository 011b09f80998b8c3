# driver.py
"""
Frame-based driver around a Simulation.

Once per frame the driver performs a fixed burst of integrator advances,
unless it is paused, and then reports plain scalar diagnostics. After
every advance the supported weight is fed to the moving average and, in
the hourglass variant, the orifice scheduler gets a chance to release
grains. The burst size only controls throughput; running the same number
of steps always produces the same state.
"""
import logging
from typing import Dict, Any, NamedTuple, Optional

from averaging import MovingAverage
from constants import DEFAULT_STEPS_PER_FRAME
from energy import EnergyDiagnostic
from orifice import OrificeScheduler
from physics import optional_param
from simulation import Simulation

# --- Data Contracts ---
#
# class FrameDriver:
#   - run_frame(self) -> Diagnostics
#     - Side Effects: when not paused, advances the simulation by
#       steps_per_frame steps. Each advance is all-or-nothing.
#     - Raises: InvariantViolation from the integrator, unhandled.
#   - toggle_pause(self) -> bool: flips and returns the paused flag.


class Diagnostics(NamedTuple):
    """Scalars exposed after each frame for display or recording."""
    time: float
    step_count: int
    total_energy: float
    weight_sample: float
    weight_fine: float
    weight_coarse: float


class FrameDriver:
    """
    Runs a Simulation in bursts and collects its diagnostics.
    """
    def __init__(
        self,
        simulation: Simulation,
        averaging: MovingAverage,
        steps_per_frame: int = DEFAULT_STEPS_PER_FRAME,
        scheduler: Optional[OrificeScheduler] = None,
        paused: bool = False,
    ):
        if steps_per_frame < 1:
            raise ValueError(f"steps_per_frame must be >= 1, got {steps_per_frame}")
        self.simulation = simulation
        self.averaging = averaging
        self.steps_per_frame = steps_per_frame
        self.scheduler = scheduler
        self.paused = paused
        self.energy = EnergyDiagnostic(simulation.constants)
        self.frame_count = 0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'FrameDriver':
        """
        Builds the simulation, averaging and (if configured) the orifice
        scheduler from a loaded config.json.
        """
        sim_params = config.get('simulation_parameters', {})
        run_params = config.get('run_control', {})

        simulation = Simulation.from_params(sim_params)
        averaging = MovingAverage.for_time_span(sim_params['averaging_time_span'], simulation.constants.dt)

        scheduler = None
        release_interval = sim_params.get('release_interval')
        if len(simulation.floors) == 2 and release_interval is not None:
            scheduler = OrificeScheduler(simulation.floors[1], release_interval, optional_param(sim_params, 'seed', 0))
            logging.info(f"Orifice release enabled, mean interval {release_interval} s.")
        elif release_interval is not None:
            logging.warning("release_interval ignored: no orifice floor (neck_height unset).")

        return cls(
            simulation,
            averaging,
            steps_per_frame=run_params.get('steps_per_frame', DEFAULT_STEPS_PER_FRAME),
            scheduler=scheduler,
            paused=run_params.get('start_paused', False),
        )

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        logging.info("Simulation paused." if self.paused else "Simulation resumed.")
        return self.paused

    def run_frame(self) -> Diagnostics:
        if not self.paused:
            sim = self.simulation
            for _ in range(self.steps_per_frame):
                sim.step()
                self.averaging.register(sim.supported_weight())
                if self.scheduler is not None:
                    self.scheduler.update(sim.time)
        self.frame_count += 1
        return self.diagnostics()

    def diagnostics(self) -> Diagnostics:
        sim = self.simulation
        return Diagnostics(
            time=sim.time,
            step_count=sim.step_count,
            total_energy=self.energy.total_energy(sim.state, sim.floors),
            weight_sample=self.averaging.latest(0),
            weight_fine=self.averaging.fine,
            weight_coarse=self.averaging.coarse,
        )
