"""Audio rendering and output.

Voices are mixed in-process into float buffers and converted to 16-bit
PCM. Output goes either to a WAV file or to the default device through
sounddevice (PortAudio).
"""
