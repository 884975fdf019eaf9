"""
data/sample_questions.py — 내장 문제

문제은행이 비어 있을 때 출제에 사용하는 AWS 솔루션 아키텍트 어소시에이트 연습 문제.
"""

from aws_mock_exam.models.question_model import MultipleAnswer, Question, SingleAnswer

SAMPLE_QUESTIONS: list[Question] = [
    Question(
        id="local-1",
        question_text="A company needs to store infrequently accessed data that must be retrievable within milliseconds. Which Amazon S3 storage class is the MOST cost-effective?",
        options={
            "A": "S3 Standard",
            "B": "S3 Standard-Infrequent Access",
            "C": "S3 Glacier Deep Archive",
            "D": "S3 Glacier Flexible Retrieval",
        },
        answer=SingleAnswer(letter="B"),
        explanation="S3 Standard-IA는 접근 빈도가 낮지만 즉시(밀리초) 조회가 필요한 데이터에 적합합니다.",
    ),
    Question(
        id="local-2",
        question_text="Which AWS service provides a managed relational database with automatic failover to a standby in another Availability Zone?",
        options={
            "A": "Amazon RDS Multi-AZ",
            "B": "Amazon DynamoDB",
            "C": "Amazon ElastiCache",
            "D": "Amazon Redshift",
        },
        answer=SingleAnswer(letter="A"),
        explanation="RDS Multi-AZ 배포는 다른 AZ의 대기 인스턴스로 동기식 복제 후 자동 장애 조치를 수행합니다.",
    ),
    Question(
        id="local-3",
        question_text="A web application must scale horizontally and distribute HTTP traffic across instances in multiple Availability Zones. Which TWO services should be used? (Choose two.)",
        options={
            "A": "Application Load Balancer",
            "B": "Amazon EC2 Auto Scaling",
            "C": "AWS Direct Connect",
            "D": "Amazon Route 53 private hosted zone",
            "E": "AWS Storage Gateway",
        },
        answer=MultipleAnswer(letters=("A", "B")),
        explanation="ALB가 여러 AZ로 트래픽을 분산하고, Auto Scaling 그룹이 인스턴스 수를 조절합니다.",
    ),
    Question(
        id="local-4",
        question_text="Which service should be used to decouple components of a distributed application with a fully managed message queue?",
        options={
            "A": "Amazon SNS",
            "B": "Amazon SQS",
            "C": "Amazon Kinesis Data Firehose",
            "D": "AWS Step Functions",
        },
        answer=SingleAnswer(letter="B"),
        explanation="SQS는 완전관리형 메시지 큐로 컴포넌트 간 결합도를 낮춥니다.",
    ),
    Question(
        id="local-5",
        question_text="A company wants to restrict access to an S3 bucket so that it can only be reached from within a specific VPC without traversing the internet. What should a solutions architect configure?",
        options={
            "A": "A NAT gateway",
            "B": "An S3 gateway VPC endpoint with a bucket policy",
            "C": "An internet gateway with a security group",
            "D": "AWS Global Accelerator",
        },
        answer=SingleAnswer(letter="B"),
        explanation="게이트웨이 VPC 엔드포인트와 aws:SourceVpce 조건의 버킷 정책으로 VPC 내부 접근만 허용할 수 있습니다.",
    ),
    Question(
        id="local-6",
        question_text="Which TWO actions improve the security of the AWS account root user? (Choose two.)",
        options={
            "A": "Enable MFA on the root user",
            "B": "Create access keys for the root user",
            "C": "Use the root user for daily administrative tasks",
            "D": "Delete or avoid creating root user access keys",
            "E": "Share the root user password with the operations team",
        },
        answer=MultipleAnswer(letters=("A", "D")),
        explanation="루트 사용자는 MFA를 활성화하고 액세스 키를 만들지 않는 것이 권장 사항입니다.",
    ),
    Question(
        id="local-7",
        question_text="An application needs a low-latency cache in front of a relational database for frequently read data. Which service fits best?",
        options={
            "A": "Amazon ElastiCache",
            "B": "Amazon EFS",
            "C": "Amazon S3 Transfer Acceleration",
            "D": "AWS Backup",
        },
        answer=SingleAnswer(letter="A"),
    ),
    Question(
        id="local-8",
        question_text="Which service can deliver static and dynamic content globally with low latency using edge locations?",
        options={
            "A": "Amazon CloudFront",
            "B": "AWS Transit Gateway",
            "C": "Amazon Lightsail",
            "D": "AWS Outposts",
        },
        answer=SingleAnswer(letter="A"),
        explanation="CloudFront는 엣지 로케이션을 통해 콘텐츠를 전 세계에 낮은 지연 시간으로 전송합니다.",
    ),
]
