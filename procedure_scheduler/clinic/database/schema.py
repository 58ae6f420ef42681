"""
Procedure Scheduler Database Schema
Supports patient visits, doctors, operation days, booked procedure slots
and the history of performed operations and consultations.
"""

SCHEMA = """
-- =============================================================================
-- 1. PATIENTS - One record per clinic visit (a person may have several)
-- =============================================================================
CREATE TABLE IF NOT EXISTS patients (
    id TEXT PRIMARY KEY,

    -- Patient Info
    national_id TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    hc_provider TEXT NOT NULL,          -- maccabi, clalit, meuhedet, leumit
    phone TEXT NOT NULL,
    additional_phone TEXT,

    -- Visit / procedure
    visit_date TEXT NOT NULL,           -- "YYYY-MM-DD"
    procedure_type TEXT,                -- colono, sigmo, gastro, double (NULL = none yet)
    preparation_type TEXT,              -- piko, meroken, noPrep
    additional_info TEXT,

    -- Scheduling state (is_scheduled is maintained by the scheduler only)
    is_scheduled INTEGER NOT NULL DEFAULT 0,
    declined_procedure INTEGER NOT NULL DEFAULT 0,

    -- Metadata
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_patients_national_id ON patients(national_id, visit_date);
CREATE INDEX IF NOT EXISTS idx_patients_unscheduled ON patients(is_scheduled, visit_date);


-- =============================================================================
-- 2. DOCTORS
-- =============================================================================
CREATE TABLE IF NOT EXISTS doctors (
    id TEXT PRIMARY KEY,
    national_id TEXT NOT NULL UNIQUE,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);


-- =============================================================================
-- 3. OPERATION_DAYS - A clinic session at one location with one doctor
-- =============================================================================
CREATE TABLE IF NOT EXISTS operation_days (
    id TEXT PRIMARY KEY,
    date TEXT NOT NULL,                 -- "YYYY-MM-DD"
    location TEXT NOT NULL,
    doctor_id TEXT NOT NULL,

    -- Operating hours
    start_hour TEXT NOT NULL,           -- "08:00"
    end_hour TEXT NOT NULL,             -- "14:00"

    is_locked INTEGER NOT NULL DEFAULT 0,

    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,

    UNIQUE (date, location, doctor_id),
    FOREIGN KEY (doctor_id) REFERENCES doctors(id)
);

CREATE INDEX IF NOT EXISTS idx_operation_days_date ON operation_days(date);


-- =============================================================================
-- 4. BOOKINGS - A patient's assigned interval within an operation day
-- =============================================================================
CREATE TABLE IF NOT EXISTS bookings (
    id TEXT PRIMARY KEY,
    patient_id TEXT NOT NULL,
    doctor_id TEXT NOT NULL,
    operation_day_id TEXT NOT NULL,

    -- Copied from the patient when booked
    procedure_type TEXT NOT NULL,

    start_time TEXT NOT NULL,           -- "09:00"
    end_time TEXT NOT NULL,             -- "09:30"
    notes TEXT,

    created_at TEXT DEFAULT CURRENT_TIMESTAMP,

    FOREIGN KEY (patient_id) REFERENCES patients(id),
    FOREIGN KEY (doctor_id) REFERENCES doctors(id),
    FOREIGN KEY (operation_day_id) REFERENCES operation_days(id)
);

CREATE INDEX IF NOT EXISTS idx_bookings_day ON bookings(operation_day_id, start_time);
CREATE INDEX IF NOT EXISTS idx_bookings_patient ON bookings(patient_id);


-- =============================================================================
-- 5. OP_HISTORY - Performed operations and consultations (record keeping only)
-- =============================================================================
CREATE TABLE IF NOT EXISTS op_history (
    id TEXT PRIMARY KEY,
    patient_id TEXT NOT NULL,
    doctor_id TEXT NOT NULL,

    is_operation INTEGER NOT NULL DEFAULT 1,   -- 0 = consultation
    date TEXT NOT NULL,                 -- "YYYY-MM-DD"
    op_type TEXT NOT NULL,              -- colono, sigmo, gastro, double
    prep_type TEXT NOT NULL,            -- piko, meroken, noPrep
    location TEXT NOT NULL,
    start_hour TEXT NOT NULL,
    end_hour TEXT NOT NULL,
    notes TEXT,

    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,

    FOREIGN KEY (patient_id) REFERENCES patients(id),
    FOREIGN KEY (doctor_id) REFERENCES doctors(id)
);

CREATE INDEX IF NOT EXISTS idx_op_history_patient ON op_history(patient_id, date);
CREATE INDEX IF NOT EXISTS idx_op_history_doctor ON op_history(doctor_id, date);
CREATE INDEX IF NOT EXISTS idx_op_history_date ON op_history(date);
"""
