import dataclasses

import matplotlib

matplotlib.use("Agg")

from gpxtrack.analyze.markers import MarkerConfig, distance_markers
from gpxtrack.analyze.track import accumulate
from gpxtrack.visualize.plot import plot_profile


def test_plot_profile_draws_profile_and_marker_lines(path_3km):
    import matplotlib.pyplot as plt

    pts = [dataclasses.replace(p, ele=100.0 + i * 10) for i, p in enumerate(path_3km)]
    _, path = accumulate(pts)
    markers = distance_markers(path, MarkerConfig())

    fig = plot_profile(path, markers, title="Test", show=False)

    ax = fig.axes[0]
    profile, *marker_lines = ax.get_lines()
    assert list(profile.get_ydata()) == [100.0, 110.0, 120.0, 130.0]
    assert len(marker_lines) == 3
    assert ax.get_title() == "Test"
    plt.close(fig)
