"""Sample dataset presets used to seed an Input layer's shape."""
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class SampleDataset:
    key: str
    name: str
    input_shape: tuple[int, ...]
    num_classes: int
    train_samples: int
    test_samples: int
    description: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["input_shape"] = list(self.input_shape)
        return data


SAMPLE_DATASETS: dict[str, SampleDataset] = {
    "mnist": SampleDataset(
        "mnist", "MNIST Handwritten Digits", (28, 28, 1), 10, 60000, 10000,
        "Dataset of handwritten digits for classification",
    ),
    "cifar10": SampleDataset(
        "cifar10", "CIFAR-10", (32, 32, 3), 10, 50000, 10000,
        "Dataset of common objects like airplanes, cars, birds, etc.",
    ),
    "fashion": SampleDataset(
        "fashion", "Fashion MNIST", (28, 28, 1), 10, 60000, 10000,
        "Dataset of fashion items like shirts, shoes, bags, etc.",
    ),
}


def get_dataset(key: str) -> SampleDataset:
    if key not in SAMPLE_DATASETS:
        raise KeyError(f"Unknown dataset: {key}")
    return SAMPLE_DATASETS[key]
