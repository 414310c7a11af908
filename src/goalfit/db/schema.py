"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- User profile: user-entered fields plus engine-owned derived targets
CREATE TABLE IF NOT EXISTS profiles (
    user_id INTEGER PRIMARY KEY,
    weight REAL,
    start_weight REAL,
    height REAL,
    age INTEGER,
    gender TEXT CHECK(gender IN ('male', 'female') OR gender IS NULL),
    activity_level TEXT CHECK(activity_level IN ('sedentary', 'light', 'moderate', 'active', 'very_active') OR activity_level IS NULL),
    goal TEXT CHECK(goal IN ('lose', 'maintain', 'gain') OR goal IS NULL),
    target_weight REAL,
    target_date DATE,
    goal_type TEXT CHECK(goal_type IN ('weight', 'body_fat', 'both') OR goal_type IS NULL),
    target_body_fat_percentage REAL,
    macro_strategy TEXT,
    start_body_fat_percentage REAL,
    start_muscle_percentage REAL,
    target_muscle_percentage REAL,
    start_belly_cm REAL,
    target_belly_cm REAL,
    bmr INTEGER,
    tdee INTEGER,
    daily_calorie_target INTEGER,
    protein_target_g INTEGER,
    carbs_target_g INTEGER,
    fats_target_g INTEGER,
    calorie_deficit INTEGER,
    protein_percentage REAL,
    carbs_percentage REAL,
    fats_percentage REAL,
    updated_at TIMESTAMP
);

-- Daily calorie/macro targets, one row per user per calendar day
CREATE TABLE IF NOT EXISTS daily_goals (
    goal_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    goal_date DATE NOT NULL,
    calories INTEGER NOT NULL,
    protein INTEGER NOT NULL,
    carbs INTEGER NOT NULL,
    fats INTEGER NOT NULL,
    protein_percentage REAL,
    carbs_percentage REAL,
    fats_percentage REAL,
    bmr INTEGER,
    tdee INTEGER,
    calorie_deficit INTEGER,
    weight_difference_kg REAL,
    weeks_to_goal REAL,
    days_to_goal INTEGER,
    weekly_calorie_deficit INTEGER,
    total_calories_needed REAL,
    weekly_fat_loss_g REAL,
    is_gaining_weight BOOLEAN DEFAULT FALSE,
    goal_type TEXT,
    is_realistic_goal BOOLEAN DEFAULT TRUE,
    warning_message TEXT,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(user_id, goal_date),
    FOREIGN KEY (user_id) REFERENCES profiles(user_id)
);

CREATE INDEX IF NOT EXISTS idx_daily_goals_user_date ON daily_goals(user_id, goal_date);

-- Weigh-ins with optional smart-scale composition
CREATE TABLE IF NOT EXISTS weight_log (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    weight_kg REAL NOT NULL,
    body_fat_percentage REAL,
    muscle_percentage REAL,
    measured_at DATE NOT NULL,
    notes TEXT,
    UNIQUE(user_id, measured_at),
    FOREIGN KEY (user_id) REFERENCES profiles(user_id)
);

CREATE INDEX IF NOT EXISTS idx_weight_log_user_date ON weight_log(user_id, measured_at);

-- Tape measurements
CREATE TABLE IF NOT EXISTS body_measurements (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    belly_cm REAL NOT NULL,
    measured_at DATE NOT NULL,
    notes TEXT,
    UNIQUE(user_id, measured_at),
    FOREIGN KEY (user_id) REFERENCES profiles(user_id)
);

CREATE INDEX IF NOT EXISTS idx_body_measurements_user_date ON body_measurements(user_id, measured_at);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
