"""
Speech generation building blocks.

    - client.py: ElevenLabs REST client (httpx)
    - chunker.py: sentence splitting on the danda
    - audio_store.py: generated clips on disk
"""
