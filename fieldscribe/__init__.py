"""Field-assessment transcription-to-structured-answer pipeline."""
