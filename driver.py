"""
Command line driver: trains the tagger on a pair of sentence/tag files,
reports accuracy on a held-out pair and tags sentences typed at the console.
"""
import argparse
import logging
import sys
from dataclasses import dataclass

import config
import tagger

logger = logging.getLogger(__name__)


def read_lines(filename):
    """Returns one token list per line of filename. Blank lines give empty
    lists so that parallel files stay aligned."""
    with open(filename, 'r', encoding=config.ENCODING) as f:
        return [tagger.tokenize(line) for line in f]


def read_training_data(sentence_file, tag_file):
    """Reads a sentence file and its parallel tag file.

    Args:
        sentence_file (str): one whitespace-separated sentence per line
        tag_file (str): one whitespace-separated tag sequence per line

    Return:
        (list, list): word lists and tag lists, index-aligned

    Raises:
        AlignmentError: if the files differ in line count or a line pair
            differs in token count.
    """
    sentences = read_lines(sentence_file)
    tags = read_lines(tag_file)
    if len(sentences) != len(tags):
        raise tagger.AlignmentError(
            f"{sentence_file} has {len(sentences)} lines but {tag_file} has {len(tags)}")
    for index, (words, sentence_tags) in enumerate(zip(sentences, tags)):
        if len(words) != len(sentence_tags):
            raise tagger.AlignmentError(
                f"line {index + 1}: {len(words)} words but {len(sentence_tags)} tags")
    logger.info("read %d sentences from %s", len(sentences), sentence_file)
    return sentences, tags


def count_correct(gold_tags, pred_tags):
    """Return the number of correctly and incorrectly predicted tags in one
    sentence. Tags are compared case-insensitively.

    Args:
        gold_tags (list): reference tags
        pred_tags (list): predicted tags, same length
    """
    if len(gold_tags) != len(pred_tags):
        raise tagger.AlignmentError(f"{len(gold_tags)} reference tags but {len(pred_tags)} predicted")
    right = 0
    wrong = 0
    for gold, pred in zip(gold_tags, pred_tags):
        if gold.lower() == pred.lower():
            right += 1
        else:
            wrong += 1
    return right, wrong


@dataclass
class EvaluationResult:
    right: int = 0
    wrong: int = 0
    failed: int = 0  # sentences that could not be decoded

    @property
    def accuracy(self):
        total = self.right + self.wrong
        return self.right / total if total else 0.0


def evaluate(sentences, reference_tags, transitions, emissions):
    """Tags every sentence and tallies correct/incorrect tags against the
    reference. Tokens of a sentence that fails to decode count as wrong.
    """
    result = EvaluationResult()
    for index, (words, gold) in enumerate(zip(sentences, reference_tags)):
        if not words:
            continue
        try:
            pred = tagger.viterbi(words, transitions, emissions)
        except tagger.DecodingError as e:
            logger.warning("sentence %d not tagged: %s", index + 1, e)
            result.failed += 1
            result.wrong += len(gold)
            continue
        right, wrong = count_correct(gold, pred)
        result.right += right
        result.wrong += wrong
    return result


def interactive_loop(transitions, emissions, stdin=None, stdout=None):
    """Prompts for sentences and prints their tags until EOF or an empty line."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    while True:
        print(config.PROMPT, file=stdout)
        line = stdin.readline()
        if not line.strip():
            return
        try:
            print(tagger.tag_input_sentence(line, transitions, emissions), file=stdout)
        except tagger.DecodingError as e:
            logger.error("could not tag sentence: %s", e)
            print(f"could not tag sentence: {e}", file=stdout)
        print(file=stdout)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="HMM part of speech tagger")
    parser.add_argument("--train-sentences", default=config.TRAIN_SENTENCES_PATH)
    parser.add_argument("--train-tags", default=config.TRAIN_TAGS_PATH)
    parser.add_argument("--test-sentences", default=None)
    parser.add_argument("--test-tags", default=None)
    parser.add_argument("--fixture", action="store_true",
                        help="use the hand-built test model instead of training")
    parser.add_argument("--interactive", action="store_true",
                        help="tag sentences read from the console")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)
    if (args.test_sentences is None) != (args.test_tags is None):
        parser.error("--test-sentences and --test-tags go together")
    return args


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format=config.LOG_FORMAT)

    try:
        if args.fixture:
            A, B = tagger.build_test_tables()
        else:
            sentences, tags = read_training_data(args.train_sentences, args.train_tags)
            A, B = tagger.train(sentences, tags)
    except (OSError, UnicodeDecodeError, tagger.TaggerError) as e:
        logger.error("failed to build HMM: %s", e)
        return 1

    if args.test_sentences:
        try:
            sentences, tags = read_training_data(args.test_sentences, args.test_tags)
        except (OSError, UnicodeDecodeError, tagger.TaggerError) as e:
            logger.error("failed to do testing: %s", e)
            return 1
        result = evaluate(sentences, tags, A, B)
        print(f"Number of tags correct: {result.right}\tNumber of tags incorrect: {result.wrong}")
        if result.failed:
            print(f"Sentences not tagged: {result.failed}")

    if args.interactive:
        interactive_loop(A, B)
    return 0


if __name__ == "__main__":
    sys.exit(main())
