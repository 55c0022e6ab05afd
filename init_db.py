"""Print the Supabase database schema for the exam practice app."""
import os
from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")

# SQL schema
SCHEMA_SQL = """
-- Courses
CREATE TABLE IF NOT EXISTS courses (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title TEXT NOT NULL,
    description TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- User profiles (one per auth user)
CREATE TABLE IF NOT EXISTS profiles (
    id UUID PRIMARY KEY REFERENCES auth.users(id) ON DELETE CASCADE,
    name TEXT,
    role VARCHAR(20) NOT NULL DEFAULT 'student' CHECK (role IN ('student', 'admin')),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Question bank; answers is [{"text": ..., "value": "++" | "+" | "-" | "--"}, ...]
CREATE TABLE IF NOT EXISTS questions (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    course_id UUID NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    source VARCHAR(20) NOT NULL CHECK (source IN ('previous', 'ai', 'kahoots')),
    theme TEXT,
    text TEXT NOT NULL,
    answers JSONB NOT NULL,
    explanation TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Finished exams
CREATE TABLE IF NOT EXISTS exam_results (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    course_id UUID NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    source VARCHAR(20) NOT NULL,
    score DECIMAL(4,1) NOT NULL DEFAULT 0,
    total_questions INT NOT NULL DEFAULT 1,
    correct_answers INT NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Per-question answers of an exam (drives seen / wrong history)
CREATE TABLE IF NOT EXISTS exam_answers (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    exam_result_id UUID NOT NULL REFERENCES exam_results(id) ON DELETE CASCADE,
    question_id UUID NOT NULL REFERENCES questions(id) ON DELETE CASCADE,
    selected_answer JSONB,
    answer_value VARCHAR(2),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Create indexes for performance
CREATE INDEX IF NOT EXISTS idx_questions_course_source ON questions(course_id, source);
CREATE INDEX IF NOT EXISTS idx_questions_theme ON questions(theme);
CREATE INDEX IF NOT EXISTS idx_exam_results_user_course ON exam_results(user_id, course_id);
CREATE INDEX IF NOT EXISTS idx_exam_answers_exam_result_id ON exam_answers(exam_result_id);
CREATE INDEX IF NOT EXISTS idx_exam_answers_value ON exam_answers(answer_value);
"""


def statements() -> list[str]:
    return [s.strip() for s in SCHEMA_SQL.split(";") if s.strip()]


if __name__ == "__main__":
    print("Supabase schema for exam practice")
    print(f"URL: {SUPABASE_URL}")
    for i, stmt in enumerate(statements(), 1):
        print(f"Statement {i}: {stmt.splitlines()[-1][:60]}...")
    print("\nNote: the Supabase client cannot run DDL; run this SQL in the Supabase SQL Editor:")
    print(SCHEMA_SQL)
