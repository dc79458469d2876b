"""Credential store core: paths, container codec, store and selector."""
