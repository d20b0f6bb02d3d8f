"""
Study design configuration: AKI 14-day mortality model
- Outcome: death14 (death within 14 days of randomization)
- Evaluated model: binomial GLM on a 75/25 stratified split, majority class down-sampled in train
- Exploratory model: restricted cubic splines on the full cohort (not evaluated)
"""

OUTCOME = 'death14'

# death14 == 0 -> 'alive', death14 == 1 -> 'dead'
OUTCOME_LEVELS = ['alive', 'dead']
POSITIVE_CLASS = 'alive'

NUMERIC_PREDICTORS = [
    'age',
    'baseline_creat',
    'bicarbonate',
    'creatinine',
    'diastolic_bp',
    'hemoglobin',
    'platelet_count',
    'potassium',
    'pulse',
    'respiratory_rate',
    'sodium',
    'systolic_bp',
    'wbcc',
]
CATEGORICAL_PREDICTORS = ['sex']

# Allow-list order of the 15 modeling columns
PREDICTORS = [
    'age', 'baseline_creat', 'bicarbonate', 'creatinine', 'diastolic_bp',
    'hemoglobin', 'platelet_count', 'potassium', 'pulse', 'respiratory_rate',
    'sex', 'sodium', 'systolic_bp', 'wbcc',
]
SELECTED_COLUMNS = PREDICTORS + [OUTCOME]

# Split / resample
SPLIT_SEED = 42
RESAMPLE_SEED = 42
TEST_SIZE = 0.25

# Preprocessing
CORR_CUTOFF = 0.7
NZV_FREQ_CUT = 95 / 5
NZV_UNIQUE_CUT = 10

# Exploratory spline model
SPLINE_KNOTS = 4

# Evaluation
CLASS_THRESHOLD = 0.5
CALIBRATION_DECIMALS = 2
N_BOOTSTRAPS = 1000

OUTCOME_LABEL = '14-day mortality'
