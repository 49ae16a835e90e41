"""Plotly drawing adapter for sampled curves.

Curves are in screen coordinates, so the figure's y axis is reversed and the
aspect ratio is locked; open endpoints are drawn as hollow circles.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import plotly.graph_objects as go

from .curve import Curve

__all__ = ["curves_to_figure", "default_figure_layout"]


OPEN_MARKER_SIZE = 8


def _axis_layout() -> Dict[str, Any]:
    return dict(
        showline=True,
        linecolor="#94a3b8",
        linewidth=1,
        mirror=True,
        showgrid=False,
        zeroline=False,
    )


def default_figure_layout() -> Dict[str, Any]:
    """Return layout defaults for a screen-space curve figure."""
    return dict(
        template="plotly_white",
        showlegend=False,
        margin=dict(l=24, r=24, t=24, b=24),
        paper_bgcolor="#ffffff",
        plot_bgcolor="#f8fafc",
        xaxis=_axis_layout(),
        yaxis=dict(_axis_layout(), autorange="reversed", scaleanchor="x", scaleratio=1),
    )


def curves_to_figure(
    curves: Iterable[Curve],
    *,
    width: Optional[float] = None,
    height: Optional[float] = None,
    show_markers: bool = True,
) -> go.Figure:
    """Build a Plotly figure with one line trace per curve.

    Parameters
    ----------
    curves : iterable of Curve
        Screen-space polylines, e.g. the concatenated output of a frame.
    width, height : float, optional
        Viewport size. When given, the axes are fixed to ``[0, width]`` and
        ``[height, 0]`` instead of autoranging.
    show_markers : bool, optional
        Draw ``circle-open`` markers at open endpoints.

    Returns
    -------
    plotly.graph_objects.Figure
    """
    fig = go.Figure()
    fig.update_layout(**default_figure_layout())

    for curve in curves:
        xs, ys = zip(*curve.points)
        fig.add_scatter(
            x=list(xs),
            y=list(ys),
            mode="lines",
            line=dict(color=curve.color, width=curve.stroke_width),
            hoverinfo="skip",
        )
        if show_markers:
            endpoints = curve.open_endpoints()
            if endpoints:
                fig.add_scatter(
                    x=[p.x for p in endpoints],
                    y=[p.y for p in endpoints],
                    mode="markers",
                    marker=dict(
                        symbol="circle-open",
                        size=OPEN_MARKER_SIZE,
                        color=curve.color,
                        line=dict(width=curve.stroke_width),
                    ),
                    hoverinfo="skip",
                )

    if width is not None and height is not None:
        fig.update_layout(width=width, height=height)
        fig.update_xaxes(range=[0, width])
        fig.update_yaxes(range=[height, 0], autorange=False)
    return fig
