from __future__ import annotations

from collections import defaultdict

from backend.app.models.block import BlockCategory, BlockDefinition, BlockKind, DataType, SocketSpec

LITERAL_TYPES = (DataType.NUMBER, DataType.TEXT, DataType.BOOLEAN)


class CatalogService:
    def __init__(self, definitions: list[BlockDefinition] | None = None) -> None:
        source = definitions if definitions is not None else self._load_builtin_definitions()
        self._definitions = {definition.id: definition for definition in source}

    def list_definitions(
        self,
        category: str | None = None,
        level: int | None = None,
    ) -> list[BlockDefinition]:
        definitions = list(self._definitions.values())
        if category:
            definitions = [definition for definition in definitions if definition.category == category]
        if level is not None:
            definitions = [definition for definition in definitions if definition.pedagogy_level <= level]
        return definitions

    def get_definition(self, definition_id: str) -> BlockDefinition | None:
        return self._definitions.get(definition_id)

    def categories(self) -> dict[str, int]:
        counters: dict[str, int] = defaultdict(int)
        for definition in self._definitions.values():
            counters[definition.category.value] += 1
        return dict(sorted(counters.items(), key=lambda kv: kv[0]))

    def __contains__(self, definition_id: str) -> bool:
        return definition_id in self._definitions

    @staticmethod
    def _binary_operator(
        definition_id: str,
        label: str,
        help_text: str,
        *,
        operand_type: DataType = DataType.NUMBER,
        result_type: DataType = DataType.NUMBER,
        pedagogy_level: int = 1,
        examples: tuple[str, ...] = (),
    ) -> BlockDefinition:
        return BlockDefinition(
            id=definition_id,
            category=BlockCategory.OPERATORS,
            kind=BlockKind.EXPRESSION,
            label=label,
            inputs=(
                SocketSpec(id="left", label="esquerda", data_type=operand_type),
                SocketSpec(id="right", label="direita", data_type=operand_type),
            ),
            output=SocketSpec(id="result", data_type=result_type),
            pedagogy_level=pedagogy_level,
            help_text=help_text,
            examples=examples,
            code_template=f"({{left}} {label} {{right}})",
        )

    def _load_builtin_definitions(self) -> list[BlockDefinition]:
        return [
            BlockDefinition(
                id="io.write",
                category=BlockCategory.IO,
                kind=BlockKind.STATEMENT,
                label="escreva",
                inputs=(SocketSpec(id="value", label="valor", data_type=DataType.ANY, accepts=LITERAL_TYPES),),
                has_next=True,
                has_previous=True,
                help_text="Exibe uma mensagem ou valor na tela",
                examples=('escreva("Olá, mundo!")', "escreva(42)"),
                code_template="escreva({value})",
            ),
            BlockDefinition(
                id="io.read",
                category=BlockCategory.IO,
                kind=BlockKind.EXPRESSION,
                label="leia",
                inputs=(SocketSpec(id="prompt", label="mensagem", data_type=DataType.TEXT, required=False),),
                output=SocketSpec(id="result", data_type=DataType.TEXT),
                help_text="Recebe um valor digitado pelo usuário",
                examples=('nome = leia("Digite seu nome:")',),
                code_template="leia({prompt})",
            ),
            BlockDefinition(
                id="var.declare",
                category=BlockCategory.VARIABLES,
                kind=BlockKind.STATEMENT,
                label="criar variável",
                inputs=(
                    SocketSpec(id="name", label="nome", data_type=DataType.TEXT),
                    SocketSpec(
                        id="value",
                        label="valor inicial",
                        data_type=DataType.ANY,
                        required=False,
                        accepts=LITERAL_TYPES,
                    ),
                ),
                has_next=True,
                has_previous=True,
                help_text="Cria uma variável para guardar informações",
                examples=("var idade = 10", 'var nome = "João"'),
                code_template="var {name} = {value}",
            ),
            BlockDefinition(
                id="var.get",
                category=BlockCategory.VARIABLES,
                kind=BlockKind.EXPRESSION,
                label="obter variável",
                inputs=(SocketSpec(id="name", label="nome", data_type=DataType.TEXT),),
                output=SocketSpec(id="value", data_type=DataType.ANY),
                help_text="Obtém o valor armazenado em uma variável",
                examples=("minhaIdade", "contador"),
                code_template="{name}",
            ),
            BlockDefinition(
                id="var.set",
                category=BlockCategory.VARIABLES,
                kind=BlockKind.STATEMENT,
                label="alterar variável",
                inputs=(
                    SocketSpec(id="name", label="nome", data_type=DataType.TEXT),
                    SocketSpec(id="value", label="novo valor", data_type=DataType.ANY, accepts=LITERAL_TYPES),
                ),
                has_next=True,
                has_previous=True,
                help_text="Altera o valor de uma variável existente",
                examples=("idade = 11", "contador = contador + 1"),
                code_template="{name} = {value}",
            ),
            self._binary_operator("op.add", "+", "Soma dois números", examples=("5 + 3 = 8",)),
            self._binary_operator("op.subtract", "-", "Subtrai dois números", examples=("10 - 3 = 7",)),
            self._binary_operator(
                "op.multiply",
                "*",
                "Multiplica dois números",
                pedagogy_level=2,
                examples=("4 * 2 = 8",),
            ),
            self._binary_operator(
                "op.divide",
                "/",
                "Divide o primeiro número pelo segundo",
                pedagogy_level=2,
                examples=("9 / 3 = 3",),
            ),
            self._binary_operator(
                "op.compare.equal",
                "==",
                "Verifica se dois valores são iguais",
                operand_type=DataType.ANY,
                result_type=DataType.BOOLEAN,
                pedagogy_level=2,
                examples=("5 == 5 → verdadeiro", "3 == 7 → falso"),
            ),
            self._binary_operator(
                "op.compare.greater",
                ">",
                "Verifica se o primeiro número é maior que o segundo",
                result_type=DataType.BOOLEAN,
                pedagogy_level=2,
                examples=("8 > 5 → verdadeiro",),
            ),
            self._binary_operator(
                "op.compare.less",
                "<",
                "Verifica se o primeiro número é menor que o segundo",
                result_type=DataType.BOOLEAN,
                pedagogy_level=2,
                examples=("3 < 5 → verdadeiro",),
            ),
            self._binary_operator(
                "op.compare.greater_equal",
                ">=",
                "Verifica se o primeiro número é maior ou igual ao segundo",
                result_type=DataType.BOOLEAN,
                pedagogy_level=3,
                examples=("5 >= 5 → verdadeiro",),
            ),
            self._binary_operator(
                "op.compare.less_equal",
                "<=",
                "Verifica se o primeiro número é menor ou igual ao segundo",
                result_type=DataType.BOOLEAN,
                pedagogy_level=3,
                examples=("4 <= 2 → falso",),
            ),
            BlockDefinition(
                id="control.if",
                category=BlockCategory.CONTROL,
                kind=BlockKind.CONTROL,
                label="se",
                inputs=(SocketSpec(id="condition", label="condição", data_type=DataType.BOOLEAN),),
                has_next=True,
                has_previous=True,
                pedagogy_level=2,
                help_text="Executa comandos apenas se a condição for verdadeira",
                examples=("se (idade > 18) entao {", '  escreva("Maior de idade")', "}"),
                code_template="se ({condition}) entao {{\n  {body}\n}}",
            ),
            BlockDefinition(
                id="control.while",
                category=BlockCategory.CONTROL,
                kind=BlockKind.CONTROL,
                label="enquanto",
                inputs=(SocketSpec(id="condition", label="condição", data_type=DataType.BOOLEAN),),
                has_next=True,
                has_previous=True,
                pedagogy_level=3,
                help_text="Repete comandos enquanto a condição for verdadeira",
                examples=("enquanto (contador < 10) faca {", "  contador = contador + 1", "}"),
                code_template="enquanto ({condition}) faca {{\n  {body}\n}}",
            ),
            BlockDefinition(
                id="literal.number",
                category=BlockCategory.OPERATORS,
                kind=BlockKind.EXPRESSION,
                label="número",
                inputs=(SocketSpec(id="value", data_type=DataType.NUMBER),),
                output=SocketSpec(id="result", data_type=DataType.NUMBER),
                help_text="Um valor numérico",
                examples=("42", "3.14", "-10"),
                code_template="{value}",
            ),
            BlockDefinition(
                id="literal.text",
                category=BlockCategory.OPERATORS,
                kind=BlockKind.EXPRESSION,
                label="texto",
                inputs=(SocketSpec(id="value", data_type=DataType.TEXT),),
                output=SocketSpec(id="result", data_type=DataType.TEXT),
                help_text="Um texto ou mensagem",
                examples=('"Olá"', '"Bem-vindo!"'),
                code_template='"{value}"',
            ),
            BlockDefinition(
                id="literal.boolean",
                category=BlockCategory.OPERATORS,
                kind=BlockKind.EXPRESSION,
                label="lógico",
                inputs=(SocketSpec(id="value", data_type=DataType.BOOLEAN),),
                output=SocketSpec(id="result", data_type=DataType.BOOLEAN),
                pedagogy_level=2,
                help_text="Um valor verdadeiro ou falso",
                examples=("verdadeiro", "falso"),
                code_template="{value}",
            ),
        ]
