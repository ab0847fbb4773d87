"""Shopping lists derived from meal plans."""
