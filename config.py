# --- Model ---
START = "#"              # pseudo-tag before the first word of every sentence
UNSEEN_SCORE = -100.0    # log-score for a (tag, word) pair never seen in training

# --- File Paths ---
TRAIN_SENTENCES_PATH = 'inputs/texts/brown-train-sentences.txt'
TRAIN_TAGS_PATH = 'inputs/texts/brown-train-tags.txt'
TEST_SENTENCES_PATH = 'inputs/texts/brown-test-sentences.txt'
TEST_TAGS_PATH = 'inputs/texts/brown-test-tags.txt'
ENCODING = 'utf-8'

# --- Console ---
PROMPT = "Write a sentence for HMM to tag:"

# --- Logging ---
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
