"""
Bigram Hidden Markov Model part of speech tagger.

Transition (tag -> tag) and emission (tag -> word) tables are estimated from
aligned sentence/tag pairs and new sentences are tagged with the Viterbi
algorithm. All scores are natural-log probabilities.

"""
import logging
from collections import Counter
from collections.abc import Mapping
from math import inf, log
from types import MappingProxyType

from nltk.tokenize import WhitespaceTokenizer

from config import START, UNSEEN_SCORE

logger = logging.getLogger(__name__)

_tokenizer = WhitespaceTokenizer()


class TaggerError(Exception):
    """Base class for tagger failures."""


class DecodingError(TaggerError):
    """No tag can be reached at some position of the sentence."""

    def __init__(self, position, word):
        super().__init__(f"no tag reachable at position {position} ({word!r})")
        self.position = position
        self.word = word


class TableFrozenError(TaggerError):
    """A count was recorded after the table was built."""


class AlignmentError(TaggerError):
    """Sentences and tags do not line up."""


def tokenize(line):
    """Split a sentence string on whitespace."""
    return _tokenizer.tokenize(line)


class ProbabilityTable(Mapping):
    """Read-only two-level table: source -> {target -> score}.

    Rows keep the insertion order of the mapping they were built from, which
    is the order the decoder visits transition targets in.
    """

    def __init__(self, rows):
        self._rows = {}
        for source, row in rows.items():
            if not row:
                raise ValueError(f"empty row for {source!r}")
            self._rows[source] = MappingProxyType(
                {target: float(score) for target, score in row.items()})

    def __getitem__(self, source):
        return self._rows[source]

    def __iter__(self):
        return iter(self._rows)

    def __len__(self):
        return len(self._rows)

    def __repr__(self):
        return f"{type(self).__name__}({len(self)} rows)"

    def score(self, source, target, default=None):
        row = self._rows.get(source)
        if row is None:
            return default
        return row.get(target, default)


def log_normalize(counts):
    """Turns a two-level count mapping into a table of log-probabilities.

    Every count in a row is divided by the row total and replaced by its
    natural logarithm, so the exponentiated scores of a row sum to 1.

    Args:
        counts (dict): source -> {target -> count}

    Return:
        ProbabilityTable: source -> {target -> ln(count / row total)}
    """
    rows = {}
    for source, row in counts.items():
        total = sum(row.values())
        if total <= 0:
            raise ValueError(f"row {source!r} has no positive counts")
        rows[source] = {target: log(count / total) for target, count in row.items()}
    return ProbabilityTable(rows)


class TableBuilder:
    """Accumulates (source, target) occurrence counts.

    Counting happens in a builder phase; build() normalizes the counts once
    and freezes the builder, so a decoder never sees a half-filled table.
    """

    def __init__(self):
        self._counts = {}
        self._table = None

    def add(self, source, target, count=1):
        """Records 'count' occurrences of target after/under source."""
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")
        if self._table is not None:
            raise TableFrozenError(f"cannot add ({source!r}, {target!r}) to a built table")
        if source not in self._counts:
            self._counts[source] = Counter()
        self._counts[source][target] += count

    @property
    def counts(self):
        return MappingProxyType(
            {source: MappingProxyType(row) for source, row in self._counts.items()})

    @property
    def built(self):
        return self._table is not None

    def build(self):
        if self._table is None:
            self._table = log_normalize(self._counts)
        return self._table


def train(sentences, tags):
    """Estimates the transition and emission tables.

    Each sentence contributes a transition from the start marker to its first
    tag, a transition between every pair of neighbouring tags and an emission
    from every tag to its (lower-cased) word. Input is assumed aligned.

    Args:
        sentences (list): a list of word lists
        tags (list): a list of tag lists, index-aligned with sentences

    Returns:
        (ProbabilityTable, ProbabilityTable): transitions and emissions
    """
    transitions = TableBuilder()
    emissions = TableBuilder()
    num_sentences = 0
    for words, sentence_tags in zip(sentences, tags):
        if not sentence_tags:
            continue
        last_tag = START
        for index, tag in enumerate(sentence_tags):
            transitions.add(last_tag, tag)
            emissions.add(tag, words[index].lower())
            last_tag = tag
        num_sentences += 1

    A = transitions.build()
    B = emissions.build()
    logger.info("trained on %d sentences: %d transition rows, %d emission rows",
                num_sentences, len(A), len(B))
    return A, B


def emission_score(emissions, tag, word):
    """Returns the emission log-probability, or UNSEEN_SCORE if tag never
    emitted word (or never emitted anything)."""
    row = emissions.get(tag)
    if row is None:
        return UNSEEN_SCORE
    return row.get(word, UNSEEN_SCORE)


def viterbi(sentence, transitions, emissions):
    """Returns the most probable tag sequence for sentence.

    Only tags reachable by an observed transition are kept in the frontier.
    A tag keeps the first predecessor that reached it unless a later one
    scores strictly higher; the frontier is visited in the order tags were
    first reached.

    Args:
        sentence: a sentence string or a list of tokens
        transitions (Mapping): tag -> {next tag -> log-probability}
        emissions (Mapping): tag -> {word -> log-probability}

    Return:
        list: one tag per token

    Raises:
        DecodingError: if no tag is reachable at some position.
    """
    words = tokenize(sentence) if isinstance(sentence, str) else list(sentence)

    scores = {START: 0.0}
    backpointers = []
    for position, token in enumerate(words):
        word = token.lower()
        next_scores = {}
        pointers = {}
        for state, score in scores.items():
            row = transitions.get(state)
            if row is None:
                continue
            for next_state, transit in row.items():
                next_score = score + transit + emission_score(emissions, next_state, word)
                if next_state not in next_scores or next_score > next_scores[next_state]:
                    next_scores[next_state] = next_score
                    pointers[next_state] = state
        if not next_scores:
            raise DecodingError(position, token)
        logger.debug("position %d (%r): %d active tags", position, word, len(next_scores))
        backpointers.append(pointers)
        scores = next_scores

    if not backpointers:
        return []

    best_tag, best_score = None, -inf
    for tag, score in scores.items():
        if best_tag is None or score > best_score:
            best_tag, best_score = tag, score

    res = []
    tag = best_tag
    for pointers in reversed(backpointers):
        res.append(tag)
        tag = pointers[tag]
    res.reverse()
    return res


def tag_input_sentence(line, transitions, emissions):
    """Tags a whitespace-separated sentence and returns the tags joined by
    single spaces."""
    return " ".join(viterbi(line, transitions, emissions))


def joint_prob(sentence, tags, transitions, emissions):
    """Returns the log-score of a tag sequence for sentence under the model.

    This is the quantity viterbi() maximizes: the sum of every transition
    (starting from the start marker) and every emission, with UNSEEN_SCORE
    for unseen emissions.

    Args:
        sentence: a sentence string or a list of tokens
        tags (list): one tag per token
        transitions (Mapping): tag -> {next tag -> log-probability}
        emissions (Mapping): tag -> {word -> log-probability}

    Return:
        float: the path score, -inf if the path uses an unseen transition
    """
    words = tokenize(sentence) if isinstance(sentence, str) else list(sentence)
    if len(words) != len(tags):
        raise ValueError(f"{len(words)} words but {len(tags)} tags")
    p = 0.0
    last_tag = START
    for word, tag in zip(words, tags):
        row = transitions.get(last_tag)
        if row is None or tag not in row:
            return -inf
        p += row[tag] + emission_score(emissions, tag, word.lower())
        last_tag = tag
    return p


# hand-built model, counts only
TEST_TRANSITION_COUNTS = {
    START: {"NP": 3, "N": 7},
    "N": {"CNJ": 2, "V": 8},
    "NP": {"V": 8, "CNJ": 2},
    "CNJ": {"V": 4, "N": 4, "NP": 2},
    "V": {"NP": 4, "CNJ": 2, "N": 4},
}

TEST_EMISSION_COUNTS = {
    "N": {"cat": 4, "dog": 4, "watch": 2},
    "NP": {"chase": 10},
    "CNJ": {"and": 10},
    "V": {"get": 1, "chase": 3, "watch": 6},
}


def build_test_tables(normalize=False):
    """Returns the hand-built (transitions, emissions) test tables.

    By default the scores are the literal counts. With normalize=True they
    are turned into log-probabilities the same way training does it.
    """
    if normalize:
        return log_normalize(TEST_TRANSITION_COUNTS), log_normalize(TEST_EMISSION_COUNTS)
    return ProbabilityTable(TEST_TRANSITION_COUNTS), ProbabilityTable(TEST_EMISSION_COUNTS)
