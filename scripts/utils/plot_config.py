"""Journal-grade figure configuration (DPI 300-600, Arial, colour-blind friendly)
Double column 176mm, height <= 8.75in, fonts 8-12pt"""
import os
import matplotlib.pyplot as plt

SAVE_DPI = 600
FIG_WIDTH_DOUBLE = 7.2   # double column ~176mm

# Predictor grids (LOWESS, spline partial effects)
GRID_NCOLS = 4
GRID_PANEL_SIZE = (2.6, 2.2)

FONT_FAMILY = 'sans-serif'
FONT_SANS = ['Arial', 'Helvetica Neue', 'Helvetica', 'DejaVu Sans']
LABEL_FONT = 11
TICK_FONT = 10
TITLE_FONT = 12
LEGEND_FONT = 9
PANEL_FONT = 8

PALETTE_MAIN = ['#E64B35', '#4DBBD5', '#00A087', '#3C5488', '#F39B7F', '#8491B4']
COLOR_DEAD = '#E64B35'
COLOR_ALIVE = '#4DBBD5'
COLOR_SMOOTH = '#3C5488'
COLOR_REF_LINE = '#95A5A6'
COLOR_GRID = '#ECF0F1'
OR_POINT_COLOR = '#2C3E50'
OR_CI_COLOR = '#7F8C8D'
OR_REF_LINE_COLOR = '#BDC3C7'
LOG_OR_TICKS = [0.1, 0.25, 0.5, 1, 2, 4, 10]

LINE_WIDTH = 2.0
LINE_WIDTH_THIN = 1.2
MARKER_SIZE = 5
CAPSIZE = 3

FOREST_FIGSIZE = (7.2, 6)


def apply_medical_style():
    plt.rcParams.update({
        'font.family': FONT_FAMILY,
        'font.sans-serif': FONT_SANS,
        'font.size': TICK_FONT,
        'axes.titlesize': TITLE_FONT,
        'axes.labelsize': LABEL_FONT,
        'xtick.labelsize': TICK_FONT,
        'ytick.labelsize': TICK_FONT,
        'legend.fontsize': LEGEND_FONT,
        'axes.unicode_minus': False,
        'mathtext.fontset': 'stix',
        'pdf.fonttype': 42,
        'ps.fonttype': 42,
        'lines.linewidth': LINE_WIDTH,
        'lines.markersize': MARKER_SIZE,
        'axes.linewidth': 1.0,
        'axes.spines.top': False,
        'axes.spines.right': False,
        'axes.grid': True,
        'axes.grid.axis': 'y',
        'grid.alpha': 0.4,
        'grid.color': COLOR_GRID,
        'grid.linestyle': '--',
        'legend.frameon': False,
        'figure.autolayout': False,
        'savefig.bbox': 'tight',
        'savefig.dpi': SAVE_DPI,
        'savefig.facecolor': 'white',
        'savefig.edgecolor': 'none',
    })


def save_fig_medical(base_path, formats=('pdf', 'png'), dpi=SAVE_DPI, **kwargs):
    """Save the current figure as PDF+PNG on white; kwargs override pad_inches etc."""
    opts = dict(bbox_inches='tight', facecolor='white', pad_inches=0.02)
    opts.update(kwargs)
    for fmt in formats:
        path = f"{base_path}.{fmt}"
        if fmt == 'png':
            plt.savefig(path, dpi=dpi, **opts)
        else:
            plt.savefig(path, **opts)
    return os.path.abspath(f"{base_path}.png")
