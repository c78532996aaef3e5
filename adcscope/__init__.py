"""ADC Scope: live waveform viewer for a 12-bit ADC sample stream."""

__version__ = "0.1.0"
