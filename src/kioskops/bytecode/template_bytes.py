"""
Compiled template module.

Built from the ``template`` Move package of the asset tokenization
example; must be rebuilt when the asset tokenization package is
republished:

    xxd -c 0 -p build/template/bytecode_modules/template.mv
"""

TEMPLATE_BYTECODE_HEX = (
    "a11ceb0b060000000a010010021026033637046d0a05776e07e501e90108ce036006ae04"
    "3e0aec04050cf10455001400090107010e01130215021602170004020001000c01000101"
    "010c01000102030700030207010000040307000605020007060700000a000100010b0a0b"
    "01020213030400030d010701000312080701000418030500050f0801010c05101001010c"
    "06110d0e00070c030600030604060109060c070f02080007080600070b040108070b0101"
    "08000b0201080008050b0401080708050803010a02010803010805010807010b04010900"
    "010900010800080900030803080508050b0401080701070806020b010109000b02010900"
    "010b02010800010608060105010b01010800020900050841737365744361700d41737365"
    "744d65746164617461064f7074696f6e06537472696e670854454d504c41544509547843"
    "6f6e746578740355726c0561736369690b64756d6d795f6669656c640c666e66745f6661"
    "63746f727904696e6974096e65775f6173736574156e65775f756e736166655f66726f6d"
    "5f6279746573046e6f6e65066f7074696f6e137075626c69635f73686172655f6f626a65"
    "63740f7075626c69635f7472616e736665720673656e64657204736f6d6506737472696e"
    "670874656d706c617465087472616e736665720a74785f636f6e746578740375726c0475"
    "746638000000000000000000000000000000000000000000000000000000000000000000"
    "000000000000000000000000000000000000000000000000000000000000010000000000"
    "000000000000000000000000000000000000000000000000000002030864000000000000"
    "000a02070653796d626f6c0a0205044e616d650a020c0b4465736372697074696f6e0a02"
    "090869636f6e5f75726c0101010a0201000002010801000000000229070111020c080702"
    "11050c07070311050c050704070621041038000c0205140704110938010c020b020c060b"
    "0007000b080b070b050b0607050a0138020c040c030b0438030b030b012e110838040200"
)


def get_template_bytecode() -> bytes:
    """Bytes of the embedded template module."""
    return bytes.fromhex(TEMPLATE_BYTECODE_HEX)
