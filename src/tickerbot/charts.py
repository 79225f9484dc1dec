"""PNG chart rendering with matplotlib (Agg backend, in-memory output).

Charts are returned as PNG bytes ready to be sent as a photo. Figures are
always closed, even on failure, so the long-running bot does not leak them.
"""

import io
from decimal import Decimal

import matplotlib

matplotlib.use("Agg")

from matplotlib import pyplot as plt  # noqa: E402

from tickerbot.config import ChartSettings  # noqa: E402
from tickerbot.exceptions import ChartRenderError  # noqa: E402
from tickerbot.logging import get_logger  # noqa: E402
from tickerbot.models import RankedValue  # noqa: E402

logger = get_logger(__name__)


def _figure(settings: ChartSettings):
    return plt.subplots(
        figsize=(settings.width / settings.dpi, settings.height / settings.dpi),
        dpi=settings.dpi,
    )


def _to_png(fig, settings: ChartSettings) -> bytes:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=settings.dpi, bbox_inches="tight")
    return buffer.getvalue()


def render_bar_chart(
    entries: list[RankedValue],
    title: str,
    settings: ChartSettings | None = None,
) -> bytes:
    """Render a leaderboard as a vertical bar chart.

    Raises:
        ChartRenderError: If there is nothing to plot or matplotlib fails.
    """
    if not entries:
        raise ChartRenderError("No values to plot")
    settings = settings or ChartSettings()

    fig, ax = _figure(settings)
    try:
        labels = [entry.symbol for entry in entries]
        values = [float(entry.value) for entry in entries]
        ax.bar(labels, values, color="#3b7dd8")
        ax.set_title(title)
        ax.ticklabel_format(axis="y", style="plain", useOffset=False)
        ax.tick_params(axis="x", labelrotation=30)
        ax.grid(axis="y", alpha=0.3)
        png = _to_png(fig, settings)
    except Exception as exc:
        raise ChartRenderError(f"Bar chart rendering failed: {exc}") from exc
    finally:
        plt.close(fig)

    logger.debug("bar_chart_rendered", bars=len(entries), size=len(png))
    return png


def render_line_chart(
    series: dict[str, list[Decimal]],
    title: str,
    settings: ChartSettings | None = None,
) -> bytes:
    """Render one line per symbol, x axis = candle index (1-based).

    Raises:
        ChartRenderError: If every series is empty or matplotlib fails.
    """
    plotted = {name: values for name, values in series.items() if values}
    if not plotted:
        raise ChartRenderError("No values to plot")
    settings = settings or ChartSettings()

    fig, ax = _figure(settings)
    try:
        for name, values in plotted.items():
            xs = list(range(1, len(values) + 1))
            ax.plot(xs, [float(v) for v in values], label=name, linewidth=1.5)
        ax.set_title(title)
        ax.set_xlabel("candle")
        ax.grid(alpha=0.3)
        ax.legend(loc="best")
        png = _to_png(fig, settings)
    except Exception as exc:
        raise ChartRenderError(f"Line chart rendering failed: {exc}") from exc
    finally:
        plt.close(fig)

    logger.debug("line_chart_rendered", series=len(plotted), size=len(png))
    return png
