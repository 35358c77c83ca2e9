import argparse
import logging

from .history import StatsHistory, languages_frame
from .settings import load_settings
from .simulation import Simulation
from .snapshot import Snapshot, build_snapshot


def print_stats(snapshot: Snapshot):
    """Prints statistics for the current tick."""
    stats = snapshot.stats
    print(f"\n--- Tick {stats.tick} Stats ---")
    print(f"Communities: {stats.total_communities} ({stats.speaking_communities} speaking)")
    print(f"Languages: {stats.total_languages} alive, {stats.extinct_languages} extinct, "
          f"{stats.new_languages_this_tick} new this tick")
    print(f"Borrowings: {stats.borrowings_this_tick}, Acquisitions: {stats.acquisitions_this_tick}")
    for rank, entry in enumerate(stats.top_languages, start=1):
        view = snapshot.languages[entry.id]
        print(f"  {rank}. {entry.name} (#{entry.id}, family {view.family_id}): "
              f"{entry.speakers} communities, '{view.sample_word}'")


def run(sim: Simulation, ticks: int, history: StatsHistory, print_interval: int) -> Snapshot:
    snapshot = build_snapshot(sim)
    history.record(snapshot)
    for _ in range(ticks):
        sim.step()
        snapshot = build_snapshot(sim)
        history.record(snapshot)
        if snapshot.tick % print_interval == 0:
            print_stats(snapshot)
    return snapshot


def main(argv=None):
    parser = argparse.ArgumentParser(description="Headless language evolution simulation")
    parser.add_argument("--ticks", type=int, default=500, help="Ticks to run (default: 500)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible run")
    parser.add_argument("--settings", type=str, default=None,
                        help="Path to a settings JSON file (default: ./langsim_settings.json if present)")
    parser.add_argument("--csv", type=str, default=None, help="Write the per-tick statistics history here")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-tick engine events")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = load_settings(args.settings)
    sim = Simulation(settings, seed=args.seed)
    history = StatsHistory()
    final = run(sim, args.ticks, history, settings["stats"]["print_interval"])

    # Final report
    print("\n--- Simulation End Report ---")
    print_stats(final)
    table = languages_frame(final)
    if not table.empty:
        print()
        print(table.head(settings["stats"]["top_k"]).to_string())
    if args.csv:
        history.to_csv(args.csv)
        print(f"\nStatistics history written to {args.csv}")


if __name__ == "__main__":
    main()
