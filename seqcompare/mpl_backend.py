from __future__ import annotations

import os
import tempfile

MPL_CONFIG_DIR_NAME = "seqcompare_mplconfig"


def configure_headless_matplotlib() -> None:
    """Select the Agg backend so figures render in CLI, batch and web workers."""

    os.environ.setdefault("MPLCONFIGDIR", os.path.join(tempfile.gettempdir(), MPL_CONFIG_DIR_NAME))
    if not os.environ.get("MPLBACKEND", "").strip():
        os.environ["MPLBACKEND"] = "Agg"

    import matplotlib

    if "agg" not in str(matplotlib.get_backend()).lower():
        matplotlib.use("Agg", force=True)


def headless_pyplot():
    configure_headless_matplotlib()
    import matplotlib.pyplot as plt

    return plt
