"""
Spring example: a mass on a spring filmed by three cameras.

spring_simulation : motion, cameras, noisy recordings
spring_plots      : Plotly figures for the example
"""

from .spring_simulation import (
    simulate_spring,
    camera_from_angles,
    default_cameras,
    record_cameras,
    generate_spring_dataset,
    signal_to_noise_ratio,
    redundancy_examples,
    recovered_signal
)

from .spring_plots import (
    plot_camera_views,
    plot_position_over_time,
    plot_redundancy_panels,
    plot_recovered_signal
)

__all__ = [
    'simulate_spring',
    'camera_from_angles',
    'default_cameras',
    'record_cameras',
    'generate_spring_dataset',
    'signal_to_noise_ratio',
    'redundancy_examples',
    'recovered_signal',
    'plot_camera_views',
    'plot_position_over_time',
    'plot_redundancy_panels',
    'plot_recovered_signal',
]
