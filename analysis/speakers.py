"""Speaker naming — stable "Speaker N" labels in order of first appearance."""


def speaker_key(entry: dict) -> str:
    """Vendor speaker id of a transcript entry as a string ("" when absent)."""
    value = entry.get("speakerId") if isinstance(entry, dict) else None
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class SpeakerResolver:
    """Maps opaque speaker ids to "Speaker 1", "Speaker 2", ... by first sighting.

    Build one per transcript. Labels depend only on lookup order, so two
    fresh resolvers fed the same ids produce the same names.
    """

    def __init__(self):
        self._names: dict[str, str] = {}

    def resolve(self, speaker_id: str) -> str:
        if speaker_id not in self._names:
            self._names[speaker_id] = f"Speaker {len(self._names) + 1}"
        return self._names[speaker_id]

    def __len__(self) -> int:
        return len(self._names)

    @property
    def names(self) -> dict[str, str]:
        """Copy of the id -> label mapping, in first-seen order."""
        return dict(self._names)
