"""Example: suggest a student's labels from a labeled teacher sample."""

from alignment_labels import LabelingEngine, TeachersRelationshipProvider
from alignment_labels.suggest import StreamCallbacks, TeacherProjectionProvider, request_suggestion

LABELS = '{"idx": 10, "match": [[[2, 2], [9, 9]], [[0, 0], [7, 7]]]}\n{"idx": 11, "match": []}'
TEACHERS = '{"student_idx": 11, "teachers": [{"teacher_idx": 10, "cluster": 3}]}'

COMMENT_TOKENS = {
    10: ["<s>", "Return", "Ġthe", "Ġsum", "</s>"],
    11: ["<s>", "Return", "Ġthe", "Ġtotal", "</s>"],
}
CODE_TOKENS = {
    10: ["<s>", "def", "Ġadd", "(", "a", ",", "Ġb", "):", "Ġreturn", "Ġa", "Ġ+", "Ġb", "</s>"],
    11: ["<s>", "def", "Ġplus", "(", "x", ",", "Ġy", "):", "Ġreturn", "Ġx", "Ġ+", "Ġy", "</s>"],
}


def main() -> None:
    engine = LabelingEngine(content=LABELS)
    teachers = TeachersRelationshipProvider.from_jsonl(TEACHERS)

    student = 11
    teacher = teachers.get_teacher_indices(student)[0]

    labeling = request_suggestion(
        TeacherProjectionProvider(),
        COMMENT_TOKENS[student],
        CODE_TOKENS[student],
        COMMENT_TOKENS[teacher],
        CODE_TOKENS[teacher],
        engine.get_labeling_on_sample(teacher),
        callbacks=StreamCallbacks(
            on_data=lambda chunk: print(chunk, end=""),
            on_error=lambda exc: print(f"\nfailed: {exc}"),
        ),
    )
    print()

    if labeling is not None:
        engine.set_labeling_on_sample(student, labeling)
        print(engine.dump())


if __name__ == "__main__":
    main()
