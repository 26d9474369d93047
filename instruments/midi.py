def midi_to_freq_equal_tempered(note: int,
                                base_note: int = 69, base_freq: float = 440.0,
                                n_tones: int = 12
                                ) -> float:
    """
    Equal-tempered tuning
    """
    return base_freq * (2 ** ((int(note) - int(base_note)) / n_tones))
