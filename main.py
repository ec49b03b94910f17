from __future__ import annotations

from frameplot.cli import main


if __name__ == "__main__":
    main()
