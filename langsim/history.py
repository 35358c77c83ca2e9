from typing import Dict, List

import pandas as pd

from .snapshot import Snapshot

STATS_COLUMNS = [
    "tick",
    "total_communities",
    "speaking_communities",
    "total_languages",
    "extinct_languages",
    "new_languages_this_tick",
    "borrowings_this_tick",
    "acquisitions_this_tick",
    "largest_language",
    "largest_speakers",
]

LANGUAGE_COLUMNS = [
    "Language", "Family", "Generation", "Parent", "Speakers", "Prestige",
    "Conservatism", "Phonemes", "Vocabulary", "Sample", "Created", "Last Evolved",
]


class StatsHistory:
    """Per-tick statistics collected from snapshots."""
    def __init__(self):
        self.rows: List[Dict] = []
        self.speakers: List[Dict[str, int]] = []

    def __len__(self):
        return len(self.rows)

    def record(self, snapshot: Snapshot) -> None:
        stats = snapshot.stats
        largest = stats.largest_language
        self.rows.append({
            "tick": stats.tick,
            "total_communities": stats.total_communities,
            "speaking_communities": stats.speaking_communities,
            "total_languages": stats.total_languages,
            "extinct_languages": stats.extinct_languages,
            "new_languages_this_tick": stats.new_languages_this_tick,
            "borrowings_this_tick": stats.borrowings_this_tick,
            "acquisitions_this_tick": stats.acquisitions_this_tick,
            "largest_language": largest.name if largest else None,
            "largest_speakers": largest.speakers if largest else 0,
        })
        # Keyed by id: names are not unique and can change
        self.speakers.append({lid: view.speakers for lid, view in snapshot.languages.items()})

    def to_frame(self) -> pd.DataFrame:
        if not self.rows:
            return pd.DataFrame(columns=STATS_COLUMNS)
        return pd.DataFrame(self.rows, columns=STATS_COLUMNS)

    def speaker_frame(self) -> pd.DataFrame:
        """Speakers per language per tick; ticks a language did not exist in are 0."""
        ticks = [row["tick"] for row in self.rows]
        df = pd.DataFrame(self.speakers, index=pd.Index(ticks, name="tick"))
        return df.fillna(0).astype(int)

    def to_csv(self, path: str) -> None:
        self.to_frame().to_csv(path, index=False)


def languages_frame(snapshot: Snapshot) -> pd.DataFrame:
    """The snapshot's language table, largest first."""
    rows = []
    for view in snapshot.languages.values():
        rows.append({
            "Language": view.name,
            "Family": view.family_id,
            "Generation": view.generation,
            "Parent": view.parent_id,
            "Speakers": view.speakers,
            "Prestige": round(view.prestige, 3),
            "Conservatism": round(view.conservatism, 3),
            "Phonemes": view.phoneme_count,
            "Vocabulary": view.vocab_size,
            "Sample": view.sample_word,
            "Created": view.creation_tick,
            "Last Evolved": view.last_evolved,
            "id": view.id,
        })
    if not rows:
        return pd.DataFrame(columns=LANGUAGE_COLUMNS, index=pd.Index([], name="id"))
    df = pd.DataFrame(rows).set_index("id")
    return df.sort_values(["Speakers", "id"], ascending=[False, True])[LANGUAGE_COLUMNS]
