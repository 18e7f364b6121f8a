"""Constants module for MentorHub configuration.

Contains the default values shared by the HTTP client, the assessment engine
and the generation prompts.
"""


# ============================================================================
# HTTP Client Constants
# ============================================================================

DEFAULT_API_BASE_URL = "/api"

# Cache settings
DEFAULT_CACHE_TTL_SECONDS = 300  # 5 minutes

# Retry settings
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY_SECONDS = 1.0
RATE_LIMITED_STATUS_CODE = 429
SERVER_ERROR_MIN_STATUS_CODE = 500

# Connection pool settings
DEFAULT_POOL_MAX_KEEPALIVE_CONNECTIONS = 20
DEFAULT_POOL_MAX_CONNECTIONS = 100
DEFAULT_POOL_KEEPALIVE_EXPIRY_SECONDS = 60
DEFAULT_HTTP_CONNECT_TIMEOUT = 10.0
DEFAULT_HTTP_READ_TIMEOUT = 60.0
DEFAULT_HTTP_WRITE_TIMEOUT = 30.0
DEFAULT_HTTP_POOL_TIMEOUT = 10.0


# ============================================================================
# Assessment Constants
# ============================================================================

ASSESSMENT_TOTAL_QUESTIONS = 10
ASSESSMENT_HISTORY_LIMIT = 5
MAX_SKILL_SCORE = 10.0

# ============================================================================
# Generation Constants
# ============================================================================

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_GENERATION_MODEL = "gpt-4"

ASSESSMENT_SYSTEM_PROMPT = "You are an expert technical interviewer and educator."
PROJECT_SYSTEM_PROMPT = "You are a professional software developer and educator."
MENTOR_SYSTEM_PROMPT = "You are a knowledgeable and supportive virtual mentor."
LEARNING_PATH_SYSTEM_PROMPT = "You are an experienced learning path designer."
CONTENT_SYSTEM_PROMPT = "You are an expert educator who writes personalized learning material."

MENTOR_FALLBACK_RESPONSE = (
    "I apologize, but I couldn't generate a response at this time."
)
FALLBACK_SKILL_AREA = "general"
FALLBACK_DIFFICULTY = 5
LEARNING_PATH_FALLBACK_ESTIMATE = "3 months"
DEFAULT_PROFICIENCY_LEVEL = "beginner"

# ============================================================================
# Data Store Constants
# ============================================================================

TABLE_USER_PROFILES = "user_profiles"
TABLE_USER_SKILLS = "user_skills"
TABLE_USER_GOALS = "user_goals"
TABLE_LEARNING_HISTORY = "learning_history"
TABLE_LEARNING_PATHS = "learning_paths"
TABLE_SKILL_ASSESSMENTS = "skill_assessments"
TABLE_ASSESSMENT_ANSWERS = "assessment_answers"
TABLE_GENERATED_PROJECTS = "generated_projects"
TABLE_MENTOR_INTERACTIONS = "mentor_interactions"
TABLE_USER_PROFICIENCY = "user_proficiency"
TABLE_USER_PREFERENCES = "user_preferences"

USER_SKILLS_CONFLICT_TARGET = "user_id,skill_name"

# ============================================================================
# Logging Constants
# ============================================================================

DEFAULT_LOG_FILE_PATH = "log.jsonl"
DEFAULT_ERROR_LOG_FILE_PATH = "error.jsonl"
LOG_STRING_MAX_LENGTH = 5000  # Maximum string length before truncation

# ============================================================================
# Error Messages
# ============================================================================

ERROR_GENERATE_ASSESSMENT = "Failed to generate assessment"
ERROR_EVALUATE_ANSWER = "Failed to evaluate answer"
ERROR_GENERATE_PROJECT = "Failed to generate project"
ERROR_MENTOR_RESPONSE = "Failed to process mentor response"
ERROR_LEARNING_PATH = "Failed to generate learning path"
ERROR_PERSONALIZED_CONTENT = "Failed to generate personalized content"
ERROR_INTERNAL = "An unexpected internal server error occurred."
