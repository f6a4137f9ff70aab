"""Package install order example for kahnsort.

This example demonstrates:
- Computing edges on demand with a callable edge source
- Flipping edges when the data lists dependencies rather than dependents
- Observing each node as it is ordered with ``on_emit``
- Leaving nodes out with ``exclude``
"""

from dataclasses import dataclass, field

import kahnsort


@dataclass(frozen=True)
class Package:
    name: str
    requires: tuple[str, ...] = field(default=())


# -----------------------------------------------------------------------------
# Package index
# -----------------------------------------------------------------------------

INDEX = {
    pkg.name: pkg
    for pkg in [
        Package("app", requires=("web", "orm", "cli")),
        Package("web", requires=("http", "templates")),
        Package("orm", requires=("db-driver",)),
        Package("cli", requires=("colors",)),
        Package("http"),
        Package("templates", requires=("markup",)),
        Package("markup"),
        Package("db-driver"),
        Package("colors"),
        Package("docs-theme", requires=("templates",)),
    ]
}


def requirements(name: str) -> tuple[str, ...]:
    # "app requires web" is an incoming edge of app, hence flip_edges below
    return INDEX[name].requires


def main() -> None:
    order = kahnsort.topological_sort(
        INDEX,
        requirements,
        flip_edges=True,
        on_emit=lambda name: print(f"installing {name}"),
        exclude=lambda name: name.startswith("docs-"),
    )
    print(f"\n{len(order)} packages installed")


if __name__ == "__main__":
    main()
