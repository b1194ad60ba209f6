import numpy as np
import pandas as pd

from color_utils import (
    create_categorical_color_map,
    is_quantitative_variable,
    trait_color_for_item,
    get_sample_order_colors,
    get_unified_color_schemes,
)


def test_categorical_color_map_is_stable_and_extends():
    first = create_categorical_color_map(['b', 'a'])
    assert first == create_categorical_color_map(['a', 'b'])

    many = create_categorical_color_map(range(25))
    assert len(set(many.values())) == 25
    assert sum(color.startswith('hsl(') for color in many.values()) == 5


def test_is_quantitative_variable():
    assert is_quantitative_variable(pd.Series(np.linspace(0, 1, 50)))
    assert not is_quantitative_variable(pd.Series([1, 2, 1, 2, 1, 2]))
    assert not is_quantitative_variable(pd.Series(['Male', 'Female']))
    assert not is_quantitative_variable(pd.Series([np.nan, np.nan]))


def test_trait_color_for_item():
    traits = get_unified_color_schemes()['trait_colors']
    assert trait_color_for_item('N4') == traits['Neuroticism']
    assert trait_color_for_item('o2') == traits['Openness']
    assert trait_color_for_item('gender') == 'gray'


def test_sample_order_colors():
    colors = get_sample_order_colors(3)
    assert colors[0] == 'rgb(0,0,255)'
    assert colors[-1] == 'rgb(255,0,0)'
    assert get_sample_order_colors(0) == []
