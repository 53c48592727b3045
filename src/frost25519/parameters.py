"""Protocol parameters shared by every participant of a key generation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Parameters:
    """
    The (t, n) configuration of a threshold group.

    Parameters:
    n (int): The total number of participants.
    t (int): The minimum number of participants required to sign.

    Raises:
    ValueError: If either value is not an integer or 1 <= t <= n does not hold.
    """

    n: int
    t: int

    def __post_init__(self):
        if not all(
            isinstance(arg, int) and not isinstance(arg, bool) for arg in (self.n, self.t)
        ):
            raise ValueError("Both arguments (n, t) must be integers.")
        if not 1 <= self.t <= self.n:
            raise ValueError(
                f"Threshold must satisfy 1 <= t <= n, got t={self.t}, n={self.n}."
            )

    def validate_index(self, index: int) -> None:
        """
        Check that a participant index lies in 1..n.

        Raises:
        ValueError: If the index is not an integer in range.
        """
        if not isinstance(index, int) or isinstance(index, bool):
            raise ValueError("Participant index must be an integer.")
        if not 1 <= index <= self.n:
            raise ValueError(
                f"Participant index {index} is out of range 1..{self.n}."
            )
