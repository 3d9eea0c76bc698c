import unittest

from commit_splitter.diff.diff_model import ChangedFile, FileStatus
from commit_splitter.grouping.change_classifier import Classification
from commit_splitter.grouping.change_types import ChangeType, Confidence
from commit_splitter.grouping.group_model import CommitGroup, CommitMessage, CommitProposal, PlanResult


def item(path, change_type, added=1, removed=0):
    changed = ChangedFile(path=path, status=FileStatus.MODIFIED, added_lines=added, removed_lines=removed)
    return Classification(file=changed, change_type=change_type, confidence=Confidence.MEDIUM)


class TestGroupModel(unittest.TestCase):
    def test_commit_group_properties(self) -> None:
        group = CommitGroup(
            category=ChangeType.CHORE,
            classifications=[
                item("package.json", ChangeType.DEPENDENCY_ADD, 3, 1),
                item("yarn.lock", ChangeType.DEPENDENCY_ADD, 40, 2),
                item("Cargo.toml", ChangeType.DEPENDENCY_UPGRADE, 1, 1),
            ],
        )
        self.assertEqual(group.paths, ["package.json", "yarn.lock", "Cargo.toml"])
        self.assertEqual(group.line_delta, 48)
        self.assertEqual(group.change_type, ChangeType.DEPENDENCY_ADD)
        self.assertEqual(len(group.files), 3)
        self.assertFalse(group.oversized)
        self.assertIsNone(group.message)

    def test_dominant_type_tie_uses_priority(self) -> None:
        group = CommitGroup(
            category=ChangeType.REFACTOR,
            classifications=[item("a.py", ChangeType.MOVE), item("b.py", ChangeType.REFACTOR)],
        )
        self.assertEqual(group.change_type, ChangeType.REFACTOR)

    def test_commit_message_text(self) -> None:
        message = CommitMessage(header="📝 docs: Add install section", body="- README.md")
        self.assertEqual(message.text, "📝 docs: Add install section\n\n- README.md")
        self.assertEqual(str(CommitMessage(header="✨ feat: Add login")), "✨ feat: Add login")

    def test_plan_result(self) -> None:
        group = CommitGroup(category=ChangeType.FEAT, classifications=[item("a.py", ChangeType.FEAT)], oversized=True)
        message = CommitMessage(header="✨ feat: Add a")
        result = PlanResult(groups=[group], proposals=[CommitProposal(group, message, True)])
        self.assertTrue(result.ok)
        self.assertEqual(result.oversized, [group])
        proposal = result.proposals[0]
        self.assertIs(proposal.group, group)
        self.assertTrue(proposal.oversized)


if __name__ == "__main__":
    unittest.main()
