from skystats.utils.constants import ModeConstants, ClipDefaults, OutlierConstants, MODE, CLIP, OUTLIER

__all__ = [
    'ModeConstants', 'ClipDefaults', 'OutlierConstants', 'MODE', 'CLIP', 'OUTLIER'
]
