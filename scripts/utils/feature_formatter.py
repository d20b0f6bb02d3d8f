"""
Feature display names
Loads display names and units from artifacts/features/feature_dictionary.json for tables and figures.
"""
import os
import json

_dict_cache = None


def _get_feature_dict():
    """Lazy-load feature_dictionary.json"""
    global _dict_cache
    if _dict_cache is not None:
        return _dict_cache
    # Works from the project root or from scripts/
    for base in [
        os.path.join(os.path.dirname(__file__), '../..'),
        os.path.join(os.path.dirname(__file__), '..'),
        '.'
    ]:
        path = os.path.join(base, 'artifacts/features/feature_dictionary.json')
        if os.path.exists(path):
            with open(path, 'r', encoding='utf-8') as f:
                _dict_cache = json.load(f)
            return _dict_cache
    _dict_cache = {}
    return _dict_cache


class FeatureFormatter:
    """
    Maps raw column names (e.g. baseline_creat) to display names (e.g. Baseline creatinine)
    """

    def __init__(self):
        self._dict = _get_feature_dict()

    def get_label(self, feature_name, with_unit=False):
        """
        Display name for one feature
        :param feature_name: raw column name
        :param with_unit: append the unit, e.g. "Creatinine (mg/dL)"
        :return: display name, or the raw name if unknown
        """
        if feature_name not in self._dict:
            return str(feature_name)
        cfg = self._dict[feature_name]
        label = cfg.get('display_name_en') or str(feature_name)
        if with_unit and cfg.get('unit'):
            # Superscripts to ^n so Arial does not miss glyphs
            unit = cfg['unit'].replace('⁹', '^9').replace('⁶', '^6').replace('³', '^3')
            label = f"{label} ({unit})"
        return label

    def format_features(self, feature_list, with_unit=False):
        return [self.get_label(f, with_unit) for f in feature_list]
