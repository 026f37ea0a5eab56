#!/usr/bin/env python3
"""Run a baseline SSD Forager Sandbox simulation and print results."""

import sys

from ssdsim.core.engine import SimulationEngine
from ssdsim.experiment.presets import get_preset


def main():
    preset = sys.argv[1] if len(sys.argv) > 1 else "full"
    config = get_preset(preset)
    config.random_seed = 42
    config.ticks_to_run = 200

    print(f"=== SSD Forager Sandbox: {config.experiment_name} ===")
    print(f"Grid: {config.env_size}x{config.env_size}, "
          f"patches: {config.berry_count}, hunt zones: {config.hunt_zone_count}")
    print(f"Agents: {', '.join(config.roster)}")
    print(f"Cooperation: {config.cooperation_enabled}  Day/night: {config.day_night_enabled}  "
          f"Sleep debt: {config.sleep_debt_enabled}  Prey population: {config.hunt_population_enabled}")
    print()

    engine = SimulationEngine(config)
    history = engine.run()

    print(f"{'Tick':>4} {'Alive':>5} {'Dead':>4} {'Hunger':>7} {'Fatigue':>7} "
          f"{'E':>6} {'T':>5} {'Night':>5}  Actions")
    print("-" * 90)

    for snap in history[::10]:
        actions = ", ".join(f"{k}={v}" for k, v in sorted(snap.action_counts.items()))
        print(
            f"{snap.tick:4d} {snap.alive:5d} {snap.deaths:4d} "
            f"{snap.mean_hunger:7.1f} {snap.mean_fatigue:7.1f} "
            f"{snap.mean_E:6.3f} {snap.mean_T:5.2f} {'yes' if snap.is_night else '':>5}  {actions}"
        )

    print()
    print(f"=== Final State (Tick {engine.tick}) ===")
    for agent in engine.roster.values():
        status = "alive" if agent.alive else "dead"
        kappa = ", ".join(f"{k}={v:.2f}" for k, v in sorted(agent.kappa.items()))
        print(f"  {agent.name:12s} {status:5s} hunger={agent.hunger:6.1f} "
              f"E={agent.E:5.2f} T={agent.T:4.2f}  kappa[{kappa}]")

    deaths = [e for e in engine.state.log if e.action == "death"]
    if deaths:
        print("\nDeaths:")
        for e in deaths:
            print(f"  tick {e.tick:4d}: {e.agent_name}")


if __name__ == "__main__":
    main()
