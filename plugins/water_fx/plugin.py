"""
Plugin registration for video hosts

Registers the water ripple pipeline as a video-to-video effect.
"""

from .pipeline import RipplePipeline


def register_pipelines(registry):
    """Called when the host loads the plugin."""
    registry.register(
        name="water_fx",
        pipeline_class=RipplePipeline,
        description="Interactive water ripples refracting the input video",
    )
