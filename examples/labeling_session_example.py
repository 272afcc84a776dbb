"""Example: label tokens of one sample and save the result."""

from alignment_labels import CODE_GROUP, COMMENT_GROUP, LabelingEngine
from alignment_labels.reconcile import reconcile_tokens, render_segments

CODE = 'def add(a, b):\n    """Add two numbers."""\n    # plain addition\n    return a + b'
CODE_TOKENS = ["<s>", "def", "Ġadd", "(", "a", ",", "Ġb", "):", "Ġreturn", "Ġa", "Ġ+", "Ġb", "</s>"]
COMMENT = "Add two numbers."
COMMENT_TOKENS = ["<s>", "Add", "Ġtwo", "Ġnumbers", ".", "</s>"]


def main() -> None:
    engine = LabelingEngine(
        content='{"idx": 0, "match": [[[0, 0], [1, 1]]]}',
        on_save=lambda dumped: print(f"Saved:\n{dumped}"),
    )

    # "numbers" <-> "a", "b" in the signature
    engine.change_tokens_to_label(0, COMMENT_GROUP, 1, [2])
    engine.change_tokens_to_label(0, CODE_GROUP, 1, [3, 5])

    code = reconcile_tokens(CODE, CODE_TOKENS)
    for segment in render_segments(code, engine.get_tokens_on_group(0, CODE_GROUP)):
        if segment.is_token:
            print(f"{segment.token_index:>2} {segment.text!r:10} label={segment.label}")

    comment = reconcile_tokens(COMMENT, COMMENT_TOKENS)
    print([span.text for span in comment.spans])

    engine.save()


if __name__ == "__main__":
    main()
